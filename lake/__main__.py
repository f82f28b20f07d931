from lake.cli import run

run()
