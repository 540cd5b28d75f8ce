"""Páginas Amarelas: personal book tracking service."""

__version__ = "0.1.0"
