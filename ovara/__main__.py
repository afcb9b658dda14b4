from ovara.cli import main

main()
