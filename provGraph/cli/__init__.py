"""Command line entry points for provGraph."""
