from .main import run_server

run_server()
