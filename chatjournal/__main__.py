"""Entry point for running chatjournal as a module: python -m chatjournal"""

from chatjournal.cli.commands import app

if __name__ == "__main__":
    app()
