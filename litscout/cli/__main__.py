"""CLI entry point.

Allows running the CLI as a module: python -m litscout.cli
"""

from litscout.cli import app

if __name__ == "__main__":
    app()
