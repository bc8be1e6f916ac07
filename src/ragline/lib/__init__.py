"""Core chunking, scoring, storage and provider building blocks."""
