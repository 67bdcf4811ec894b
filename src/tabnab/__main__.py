from tabnab.cli import main

main()
