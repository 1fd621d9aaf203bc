"""Command line interface for sovereign-watch."""
