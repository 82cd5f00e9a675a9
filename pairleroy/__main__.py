from pairleroy.cli import main

main()
