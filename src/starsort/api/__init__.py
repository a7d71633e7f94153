"""HTTP boundary for the categorization pipeline."""
