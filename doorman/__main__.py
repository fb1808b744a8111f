from doorman.main import run

run()
