"""Command line entry points for digitnet."""
