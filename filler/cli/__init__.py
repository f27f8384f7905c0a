"""Command-line interface for Filler."""
