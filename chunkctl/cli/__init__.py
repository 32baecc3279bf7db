"""Command-line interface for chunkctl."""
