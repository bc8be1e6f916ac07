"""Command line interface for ragline."""
