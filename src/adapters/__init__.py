"""Integration adapters: SQLite storage and Discord mapping/delivery."""
