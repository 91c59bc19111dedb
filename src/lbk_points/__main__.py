from lbk_points.app import main

main()
