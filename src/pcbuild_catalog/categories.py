"""Hardware categories and the store collection behind each one."""

from dataclasses import dataclass

from .errors import CategoryNotFound


@dataclass(frozen=True)
class Category:
    slug: str
    collection: str
    display_name: str


# Slug (URL path segment) -> collection. Collection names follow the import
# batches the catalog was scraped into.
CATEGORIES: dict[str, Category] = {
    c.slug: c for c in (
        Category("case", "case_productos", "Gabinete"),
        Category("cpu", "processor_productos", "Procesador"),
        Category("gpu", "graphic-card_productos", "Tarjeta Gráfica"),
        Category("memory", "memory_productos", "Memoria RAM"),
        Category("motherboard", "motherboard_productos", "Placa Base"),
        Category("power-supply", "power-supply_productos", "Fuente de Alimentación"),
        Category("storage", "storage_productos", "Almacenamiento"),
        Category("cooler", "cooler_productos", "Refrigeración"),
    )
}


def get_category(slug: str) -> Category:
    """Look up a category by slug.

    Raises:
        CategoryNotFound: if the slug is not one of the fixed categories
    """
    try:
        return CATEGORIES[slug]
    except (KeyError, TypeError):
        raise CategoryNotFound(slug) from None
