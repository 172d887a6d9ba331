from edumate.cli.commands import app

app(prog_name="edumate")
