"""HTTP API for batch document ingestion."""
