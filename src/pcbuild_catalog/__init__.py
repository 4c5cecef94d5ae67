"""PC Build Catalog - filterable PC component listings per hardware category."""

__version__ = "0.1.0"
