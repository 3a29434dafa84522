from repostate.main import run

run()
