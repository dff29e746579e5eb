"""Event ingestion, status, timeline and search resources."""
