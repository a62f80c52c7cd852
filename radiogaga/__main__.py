from radiogaga.main import run

run()
