"""Transport implementations for the Box REST API."""
