"""Scene contract validation and beat splitting for generated prose."""
