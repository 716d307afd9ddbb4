"""Spreadsheet ingestion and reconciliation for personal ledgers."""

__version__ = "0.1.0"
