"""Core pipeline: models, ETL, storage, services."""
