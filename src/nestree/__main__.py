from nestree.cli.app import app

app()
