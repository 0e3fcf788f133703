from api import categories, products, uploads

__all__ = [
    "categories",
    "products",
    "uploads",
]
