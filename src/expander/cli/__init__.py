"""Command line interface for the expander."""
