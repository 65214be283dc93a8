"""End-to-end runners used by the CLI."""
