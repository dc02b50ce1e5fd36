"""Endpoint command groups registered on the root ``notion`` app."""
