"""HTTP API for the session ingest service."""
