"""Domain layer - result model, value types and the error taxonomy."""
