import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Category, Product, get_db, save_to_db, update_to_db, delete_from_db
from schemas import *
from services import CatalogService, would_create_cycle
from utils.errors import ConflictError, CatalogValidationError, NotFoundError
from utils.security import require_admin
from .deps import get_catalog

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/categories", response_model=list[CategoryResponse])
async def categories(catalog: CatalogService = Depends(get_catalog)):
    return [category.model_dump() for category in await catalog.list_categories()]

@router.get("/categories/tree", response_model=list[CategoryTreeResponse])
async def category_tree(catalog: CatalogService = Depends(get_catalog)):
    return await catalog.get_category_tree()

@router.get("/categories/{slug}", response_model=CategoryPageResponse)
async def category_page(slug: str, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.resolve_category_by_slug(slug)

@router.get("/categories/{slug}/products", response_model=ProductsResponse)
async def category_products(
    slug: str,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    page: int = Query(1, alias="page", ge=1),  # Page par défaut 1
    limit: int = Query(24, alias="limit", ge=1, le=100),
    catalog: CatalogService = Depends(get_catalog),
):
    total_items = await catalog.count_products_for_category(slug, min_price, max_price)
    products = await catalog.list_products_for_category(
        slug, min_price=min_price, max_price=max_price, limit=limit, offset=(page - 1) * limit
    )
    return {"products": products, "pagination": build_pagination(page, limit, total_items)}

# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------

def _admin_response(db: Session, category: Category) -> dict:
    products_count = db.query(func.count(Product.id)).filter(Product.category_id == category.id).scalar()
    children_count = db.query(func.count(Category.id)).filter(Category.parent_id == category.id).scalar()
    response = CategoryAdminResponse.model_validate(category)
    return response.model_copy(update={"products_count": products_count or 0, "children_count": children_count or 0})

def _check_parent(db: Session, parent_id: Optional[int], action: str):
    if parent_id is not None and not db.query(Category).filter(Category.id == parent_id).first():
        raise CatalogValidationError.for_action("categories", action, "parent_not_found")

@router.get("/admin/categories", response_model=list[CategoryAdminResponse])
def admin_categories(
    current_user: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    products_count = dict(
        db.query(Product.category_id, func.count(Product.id)).group_by(Product.category_id).all()
    )
    children_count = dict(
        db.query(Category.parent_id, func.count(Category.id))
        .filter(Category.parent_id.isnot(None))
        .group_by(Category.parent_id)
        .all()
    )
    all_categories = db.query(Category).order_by(Category.name.asc()).all()
    return [
        CategoryAdminResponse.model_validate(cat).model_copy(update={
            "products_count": products_count.get(cat.id, 0),
            "children_count": children_count.get(cat.id, 0),
        }) for cat in all_categories
    ]

@router.get("/admin/categories/{id}", response_model=CategoryAdminResponse)
def admin_category(
    id: int,
    current_user: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    db_category = db.query(Category).filter(Category.id == id).first()
    if not db_category:
        raise NotFoundError.for_action("categories", "get", "not_found")
    return _admin_response(db, db_category)

# ✅ Endpoint pour ajouter une catégorie
@router.post("/admin/categories", response_model=CategoryAdminResponse, status_code=201)
async def create_category(
    category: CategoryCreate,
    current_user: dict = Depends(require_admin),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog),
):
    if db.query(Category).filter(Category.slug == category.slug).first():
        raise CatalogValidationError.for_action("categories", "create", "already_exists")
    _check_parent(db, category.parent_id, "create")

    new_category = Category(
        name=category.name,
        slug=category.slug,
        description=category.description,
        parent_id=category.parent_id,
    )
    save_to_db(new_category, db)
    catalog.invalidate_categories()
    logger.info(f"Catégorie créée : {new_category.slug} par {current_user['email']}")
    return _admin_response(db, new_category)

@router.put("/admin/categories/{id}", response_model=CategoryAdminResponse)
async def update_category(
    id: int,
    category: CategoryCreate,
    current_user: dict = Depends(require_admin),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog),
):
    db_category = db.query(Category).filter(Category.id == id).first()
    if not db_category:
        raise NotFoundError.for_action("categories", "update", "not_found")

    existing = db.query(Category).filter(Category.slug == category.slug).first()
    if existing and existing.id != id:  # Vérifier que ce n'est pas la même catégorie
        raise CatalogValidationError.for_action("categories", "update", "already_exists")

    # parentId absent : le parent actuel est conservé (null explicite = racine)
    parent_id = category.parent_id if "parent_id" in category.model_fields_set else db_category.parent_id
    _check_parent(db, parent_id, "update")
    if would_create_cycle(id, parent_id, db.query(Category).all()):
        raise ConflictError.for_action("categories", "update", "cyclic_parent")

    db_category.name = category.name
    db_category.slug = category.slug
    db_category.description = category.description
    db_category.parent_id = parent_id
    update_to_db(db_category, db)
    catalog.invalidate_categories()
    return _admin_response(db, db_category)

@router.delete("/admin/categories/{id}")
async def delete_category(
    id: int,
    current_user: dict = Depends(require_admin),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog),
):
    db_category = db.query(Category).filter(Category.id == id).first()
    if not db_category:
        raise NotFoundError.for_action("categories", "delete", "not_found")

    # Suppression bloquée tant qu'il reste des produits ou des sous-catégories
    if db.query(Product.id).filter(Product.category_id == id).first():
        raise ConflictError.for_action("categories", "delete", "has_products")
    if db.query(Category.id).filter(Category.parent_id == id).first():
        raise ConflictError.for_action("categories", "delete", "has_children")

    delete_from_db(db_category, db)
    catalog.invalidate_categories()
    logger.info(f"Catégorie supprimée : {id} par {current_user['email']}")
    return {"message": "Catégorie supprimée avec succès"}
