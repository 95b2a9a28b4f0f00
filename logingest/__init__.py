"""
Log Ingest - HTTP Log Ingestion Service

FastAPI service that accepts batches of structured log records, optionally
checks each record's owner against a user directory, and persists accepted
records to MongoDB.
"""

__version__ = "0.1.0"
