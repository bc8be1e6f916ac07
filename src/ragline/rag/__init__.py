"""Ingestion and retrieval-augmented answering."""
