"""Allow ``python -m sheetpress``."""

from sheetpress.cli import app

if __name__ == "__main__":
    app()
