import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from models import Category, Product, ProductImage, get_db, save_to_db, update_to_db, delete_from_db
from schemas import *
from services import CatalogService, LocalImageStorage
from utils.errors import CatalogValidationError, NotFoundError
from utils.security import require_admin
from .deps import get_catalog, get_storage

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/products", response_model=ProductsResponse)
async def products(
    category: Optional[str] = Query(None, alias="category", description="Slug de la catégorie (sous-catégories comprises)"),
    featured: Optional[bool] = Query(None, alias="featured"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    page: int = Query(1, alias="page", ge=1),  # Page par défaut 1
    limit: int = Query(24, alias="limit", ge=1, le=100),  # Limite par défaut
    catalog: CatalogService = Depends(get_catalog),
):
    products, total_items = await catalog.find_products(
        category_slug=category,
        min_price=min_price,
        max_price=max_price,
        featured=featured,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return {"products": products, "pagination": build_pagination(page, limit, total_items)}

@router.get("/search", response_model=list[ProductResponse])
async def search(
    q: Optional[str] = Query(None, alias="q"),  # Paramètre de recherche
    category: Optional[str] = Query(None, alias="category"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.search_products(query=q, category_slug=category, min_price=min_price, max_price=max_price)

@router.get("/new-arrivals", response_model=list[NewArrivalsCategory])
async def new_arrivals(
    category_limit: int = Query(6, alias="categoryLimit", ge=1, le=24),
    per_category: int = Query(4, alias="perCategory", ge=1, le=12),
    catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.new_arrivals(category_limit=category_limit, per_category=per_category)

@router.get("/products/{slug}", response_model=ProductResponse)
def product(slug: str, catalog: CatalogService = Depends(get_catalog)):
    return catalog.get_product(slug)

@router.get("/products/{slug}/related", response_model=list[ProductResponse])
def related_products(
    slug: str,
    limit: int = Query(4, alias="limit", ge=1, le=20),
    catalog: CatalogService = Depends(get_catalog),
):
    return catalog.related_products(slug, limit=limit)

# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------

def _check_product(db: Session, payload: ProductCreate, action: str, product_id: int = None):
    existing = db.query(Product).filter(Product.slug == payload.slug).first()
    if existing and existing.id != product_id:
        raise CatalogValidationError.for_action("products", action, "already_exists")

    # La catégorie doit exister avant l'insertion
    if not db.query(Category).filter(Category.id == payload.category_id).first():
        raise CatalogValidationError.for_action("products", action, "category_not_found")

def _release_images(db: Session, storage: LocalImageStorage, urls: list[str]):
    """Supprime les fichiers stockés qui ne sont plus référencés par aucun produit."""
    for url in dict.fromkeys(urls):
        if db.query(ProductImage.id).filter(ProductImage.url == url).first():
            continue  # Encore utilisée par un autre produit
        storage.delete_by_url(url)

@router.post("/admin/products", response_model=ProductResponse, status_code=201)
def create_product(
    payload: ProductCreate,
    current_user: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    _check_product(db, payload, "create")

    new_product = Product(
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        price=payload.price,
        inventory=payload.inventory,
        featured=payload.featured,
        category_id=payload.category_id,
        images=[ProductImage(url=url, position=position) for position, url in enumerate(payload.images)],
    )
    save_to_db(new_product, db)
    logger.info(f"Produit créé : {new_product.slug} par {current_user['email']}")
    return new_product

@router.put("/admin/products/{id}", response_model=ProductResponse)
def update_product(
    id: int,
    payload: ProductUpdate,
    current_user: dict = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: LocalImageStorage = Depends(get_storage),
):
    product = db.query(Product).filter(Product.id == id).first()
    if not product:
        raise NotFoundError.for_action("products", "update", "not_found")
    _check_product(db, payload, "update", product_id=id)

    removed_urls = []
    if payload.images is not None:
        removed_urls = [image.url for image in product.images if image.url not in payload.images]
        product.images = [ProductImage(url=url, position=position) for position, url in enumerate(payload.images)]

    product.name = payload.name
    product.slug = payload.slug
    product.description = payload.description
    product.price = payload.price
    product.inventory = payload.inventory
    product.featured = payload.featured
    product.category_id = payload.category_id
    update_to_db(product, db)

    _release_images(db, storage, removed_urls)
    return product

@router.delete("/admin/products/{id}")
def delete_product(
    id: int,
    current_user: dict = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: LocalImageStorage = Depends(get_storage),
):
    product = db.query(Product).filter(Product.id == id).first()
    if not product:
        raise NotFoundError.for_action("products", "delete", "not_found")

    image_urls = [image.url for image in product.images]
    delete_from_db(product, db)  # Les images sont supprimées en cascade

    # Supprimer les fichiers images associés
    _release_images(db, storage, image_urls)
    logger.info(f"Produit supprimé : {id} par {current_user['email']}")
    return {"message": "Produit et images supprimés avec succès"}
