"""Persistence layer: schema and store."""
