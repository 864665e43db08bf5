"""Command-line entry points for persistkit."""
