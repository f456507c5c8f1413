"""Lazily-fetched Box items, folders and accounts."""
