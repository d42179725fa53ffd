from deckrunner.cli.main import main

main()
