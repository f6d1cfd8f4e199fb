from vcx_agent.cli.main import app

if __name__ == "__main__":
    app()
