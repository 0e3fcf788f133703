from .base import *
from .categories import *
from .products import *

__all__ = ["Base", "Category", "Product", "ProductImage", "create_db_engine", "create_session_factory", "get_db",
           "get_pool_status", "save_to_db", "update_to_db", "delete_from_db"]
