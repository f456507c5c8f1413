"""Client-side object model for the Box storage API."""

__version__ = "0.1.0"
