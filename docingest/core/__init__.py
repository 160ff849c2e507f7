"""Core ingestion domain: jobs, encoding, polling and insights."""
