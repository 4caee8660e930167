from swiftstyle_cli.main import cli

cli()
