"""Searchable knowledge base built from documentation sites and local notes."""

__version__ = "0.1.0"
