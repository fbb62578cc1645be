from zscan_sync.admin.cli import main

main()
