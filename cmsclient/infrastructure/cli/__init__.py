"""Console presentation for the developer CLI."""
