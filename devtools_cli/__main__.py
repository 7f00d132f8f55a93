from devtools_cli.cli import main

main()
