"""Core models and error taxonomy shared across ironfly."""
