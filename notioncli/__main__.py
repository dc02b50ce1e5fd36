from notioncli.app import main

main()
