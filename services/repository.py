import logging
from functools import wraps
from typing import Iterable, Optional, Protocol

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Category, Product
from schemas import CategoryRecord, ProductResponse
from utils.errors import UpstreamError

logger = logging.getLogger(__name__)

class CatalogRepository(Protocol):
    """Contrat de lecture du catalogue consommé par CatalogService."""

    def list_categories(self) -> list[CategoryRecord]: ...

    def get_category_by_slug(self, slug: str) -> Optional[CategoryRecord]: ...

    def list_products(
        self,
        category_ids: Optional[Iterable[int]] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        featured: Optional[bool] = None,
        exclude_id: Optional[int] = None,
        query: Optional[str] = None,
        with_images: bool = False,
    ) -> list[ProductResponse]: ...

    def count_products(
        self,
        category_ids: Optional[Iterable[int]] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        featured: Optional[bool] = None,
        exclude_id: Optional[int] = None,
        query: Optional[str] = None,
        with_images: bool = False,
    ) -> int: ...

    def get_product_by_slug(self, slug: str) -> Optional[ProductResponse]: ...

def upstream_guard(method):
    """Convertit les erreurs SQLAlchemy en UpstreamError (journalisées, jamais réessayées)."""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Erreur base de données dans {method.__name__}: {e}")
            raise UpstreamError("db.unavailable") from e
    return wrapper

class SqlCatalogRepository:
    def __init__(self, db: Session):
        self.db = db

    @upstream_guard
    def list_categories(self) -> list[CategoryRecord]:
        categories = self.db.query(Category).order_by(Category.name.asc()).all()
        return [CategoryRecord.model_validate(category) for category in categories]

    @upstream_guard
    def get_category_by_slug(self, slug: str) -> Optional[CategoryRecord]:
        category = self.db.query(Category).filter(func.lower(Category.slug) == slug.lower()).first()
        return CategoryRecord.model_validate(category) if category else None

    def _filtered_query(self, category_ids=None, min_price=None, max_price=None, featured=None, exclude_id=None, query=None,
                        with_images=False):
        products = self.db.query(Product)

        if category_ids is not None:
            products = products.filter(Product.category_id.in_(list(category_ids)))

        # Bornes de prix inclusives
        if min_price is not None:
            products = products.filter(Product.price >= min_price)
        if max_price is not None:
            products = products.filter(Product.price <= max_price)

        if featured is not None:
            products = products.filter(Product.featured == featured)

        if exclude_id is not None:
            products = products.filter(Product.id != exclude_id)

        if with_images:
            products = products.filter(Product.images.any())

        # Recherche textuelle : tous les termes doivent être présents
        if query:
            search_filters = []
            for term in query.lower().split():
                search_filters.append(or_(
                    func.lower(Product.name).contains(term),
                    func.lower(Product.description).contains(term),
                ))
            products = products.filter(and_(*search_filters))

        return products

    @upstream_guard
    def list_products(self, category_ids=None, min_price=None, max_price=None, limit=None, offset=0,
                      featured=None, exclude_id=None, query=None, with_images=False) -> list[ProductResponse]:
        if category_ids is not None and not category_ids:
            return []

        products = self._filtered_query(category_ids, min_price, max_price, featured, exclude_id, query, with_images)
        products = products.order_by(Product.created_at.desc(), Product.id.desc())
        if offset:
            products = products.offset(offset)
        if limit is not None:
            products = products.limit(limit)
        return [ProductResponse.model_validate(product) for product in products.all()]

    @upstream_guard
    def count_products(self, category_ids=None, min_price=None, max_price=None, featured=None,
                       exclude_id=None, query=None, with_images=False) -> int:
        if category_ids is not None and not category_ids:
            return 0
        return self._filtered_query(
            category_ids, min_price, max_price, featured, exclude_id, query, with_images
        ).count()

    @upstream_guard
    def get_product_by_slug(self, slug: str) -> Optional[ProductResponse]:
        product = self.db.query(Product).filter(Product.slug == slug.lower()).first()
        return ProductResponse.model_validate(product) if product else None
