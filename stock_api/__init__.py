"""Daily equity CSV ingestion and aggregate query service."""
