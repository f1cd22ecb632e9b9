"""Command line interface for livestate."""
