from nightly.cli.app import main

main()
