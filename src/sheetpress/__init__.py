"""sheetpress: spreadsheet-driven static page publishing."""

__version__ = "0.1.0"
