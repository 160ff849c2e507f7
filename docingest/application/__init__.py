"""Application layer: orchestration of upload batches."""
