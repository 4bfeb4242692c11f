from matrix_rss.main import main

main()
