from clarion.cli.app import main

main()
