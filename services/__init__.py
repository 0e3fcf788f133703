from .category_tree import *
from .repository import CatalogRepository, SqlCatalogRepository
from .catalog import CatalogService, check_price_range
from .storage import LocalImageStorage
