"""Core engine: validation, PR computation, colour scale, merge and grouping."""
