"""Entry point for ``python -m matomeru``."""

from matomeru.cli import app

if __name__ == "__main__":
    app()
