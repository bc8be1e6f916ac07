"""ragline CLI commands."""
