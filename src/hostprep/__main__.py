from hostprep.cli.app import app

app(prog_name="hostprep")
