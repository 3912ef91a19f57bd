"""Command line interface for the analytics engine."""
