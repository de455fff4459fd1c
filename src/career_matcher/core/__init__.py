"""Domain models and typed errors."""
