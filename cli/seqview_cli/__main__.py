from seqview_cli.main import main

main()
