"""Command implementations for the espkit CLI."""
