"""Exceptions raised by the catalog and its store."""


class CatalogError(Exception):
    """Base class for catalog failures."""


class NotFound(CatalogError):
    """A requested resource does not exist."""


class CategoryNotFound(NotFound):
    """The category is not one of the fixed hardware categories."""

    def __init__(self, category: str):
        super().__init__(f"Unknown category: {category!r}")
        self.category = category


class StoreError(CatalogError):
    """The component store failed. ``str(err)`` is the store's raw message."""


class StoreUnavailable(StoreError):
    """The store could not be opened."""


class QueryExecutionFailure(StoreError):
    """A statement against an open store failed."""
