"""Entry point for `python -m shokulab`"""

from shokulab.cli.main import app

if __name__ == "__main__":
    app()
