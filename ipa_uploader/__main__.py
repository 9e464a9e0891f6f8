from ipa_uploader.cli.app import main

main()
