import logging
from typing import Optional

from schemas import CategoryPageResponse, CategoryRecord, NewArrivalsCategory, ProductResponse
from utils.cache import TTLCache
from utils.errors import CatalogValidationError, NotFoundError

from .category_tree import (
    CategoryNode,
    build_category_tree,
    collect_descendant_ids,
    find_category,
    format_category_path,
    resolve_ancestor_path,
)
from .repository import CatalogRepository

logger = logging.getLogger(__name__)

CATEGORIES_CACHE_KEY = "categories:all"

def check_price_range(min_price: Optional[float], max_price: Optional[float]):
    if min_price is not None and max_price is not None and min_price > max_price:
        raise CatalogValidationError.for_action("products", "list", "invalid_price_range")

class CatalogService:
    """
    Résolution des catégories (arbre, fil d'Ariane, sous-arbre) et requêtes produits associées.

    Le dépôt et le cache sont injectés : aucune instance globale.
    """

    def __init__(self, repository: CatalogRepository, cache: TTLCache):
        self.repository = repository
        self.cache = cache

    async def list_categories(self, force_refresh: bool = False) -> list[CategoryRecord]:
        async def load():
            return self.repository.list_categories()
        return await self.cache.get_or_load(CATEGORIES_CACHE_KEY, load, force_refresh=force_refresh)

    def invalidate_categories(self):
        self.cache.invalidate(CATEGORIES_CACHE_KEY)

    async def get_category_tree(self) -> list[CategoryNode]:
        return build_category_tree(await self.list_categories())

    async def resolve_category_by_slug(self, slug: str) -> CategoryPageResponse:
        categories = await self.list_categories()
        category = find_category(categories, slug=slug)
        if category is None:
            logger.info(f"Catégorie introuvable : {slug}")
            raise NotFoundError.for_action("categories", "get", "not_found")

        children = sorted(
            (row for row in categories if row.parent_id == category.id and row.id != category.id),
            key=lambda row: row.name.lower(),
        )
        return CategoryPageResponse(
            category=category.model_dump(),
            ancestor_path=[ancestor.model_dump() for ancestor in resolve_ancestor_path(category, categories)],
            path=format_category_path(category, categories),
            child_categories=[child.model_dump() for child in children],
        )

    async def category_scope(self, slug: str) -> set[int]:
        """Ids de la catégorie et de toutes ses sous-catégories, NotFoundError si le slug est inconnu."""
        categories = await self.list_categories()
        category = find_category(categories, slug=slug)
        ids = collect_descendant_ids(category.id, categories) if category is not None else set()
        if not ids:
            raise NotFoundError.for_action("categories", "get", "not_found")
        return ids

    async def list_products_for_category(
        self,
        slug: str,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[ProductResponse]:
        check_price_range(min_price, max_price)
        ids = await self.category_scope(slug)
        return self.repository.list_products(
            category_ids=ids, min_price=min_price, max_price=max_price, limit=limit, offset=offset
        )

    async def count_products_for_category(
        self, slug: str, min_price: Optional[float] = None, max_price: Optional[float] = None
    ) -> int:
        check_price_range(min_price, max_price)
        ids = await self.category_scope(slug)
        return self.repository.count_products(category_ids=ids, min_price=min_price, max_price=max_price)

    async def find_products(
        self,
        category_slug: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        featured: Optional[bool] = None,
        query: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[list[ProductResponse], int]:
        """Liste paginée + total, catégorie optionnelle (sous-arbre compris)."""
        check_price_range(min_price, max_price)
        ids = await self.category_scope(category_slug) if category_slug else None
        filters = dict(category_ids=ids, min_price=min_price, max_price=max_price, featured=featured, query=query)
        products = self.repository.list_products(limit=limit, offset=offset, **filters)
        return products, self.repository.count_products(**filters)

    async def search_products(
        self,
        query: Optional[str] = None,
        category_slug: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> list[ProductResponse]:
        products, _ = await self.find_products(
            category_slug=category_slug, min_price=min_price, max_price=max_price, query=(query or "").strip() or None
        )
        return products

    def get_product(self, slug: str) -> ProductResponse:
        product = self.repository.get_product_by_slug(slug)
        if product is None:
            raise NotFoundError.for_action("products", "get", "not_found")
        return product

    def related_products(self, slug: str, limit: int = 4) -> list[ProductResponse]:
        product = self.get_product(slug)
        return self.repository.list_products(category_ids={product.category_id}, exclude_id=product.id, limit=limit)

    async def new_arrivals(self, category_limit: int = 6, per_category: int = 4) -> list[NewArrivalsCategory]:
        """
        Derniers produits (avec images) de chaque catégorie.

        Seuls les produits rattachés directement à la catégorie sont pris en compte.
        Les catégories sans produit sont ignorées ; les plus récemment alimentées passent en premier.
        """
        sections = []
        for category in await self.list_categories():
            products = self.repository.list_products(
                category_ids={category.id}, with_images=True, limit=per_category
            )
            if products:
                sections.append(NewArrivalsCategory(
                    id=category.id, name=category.name, slug=category.slug, products=products
                ))

        def newest(section: NewArrivalsCategory):
            latest = section.products[0]
            return (latest.created_at.timestamp() if latest.created_at else 0.0, latest.id)

        sections.sort(key=newest, reverse=True)
        return sections[:category_limit]
