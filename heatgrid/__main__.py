from heatgrid.cli import main

main()
