"""Console presentation."""
