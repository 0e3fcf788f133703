import re

from . import BaseModel, ConfigDict, Field, Optional, datetime, field_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

# Segments déjà pris par des routes fixes sous /categories
RESERVED_CATEGORY_SLUGS = {"tree"}

def validate_slug(value: str) -> str:
    value = value.strip().lower()
    if not SLUG_PATTERN.match(value):
        raise ValueError("Slug must contain only lowercase letters, numbers, and hyphens")
    return value

# ✅ Ligne plate renvoyée par le dépôt (mise en cache, indépendante de la session SQLAlchemy)
class CategoryRecord(BaseModel):
    id: int
    name: str
    slug: str
    parent_id: Optional[int] = Field(None, alias="parentId")
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, frozen=True)

# ✅ Schéma pour Category
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    slug: str = Field(..., min_length=1, max_length=96)
    description: Optional[str] = None
    parent_id: Optional[int] = Field(None, alias="parentId", gt=0)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("slug")
    @classmethod
    def check_slug(cls, value: str) -> str:
        value = validate_slug(value)
        if value in RESERVED_CATEGORY_SLUGS:
            raise ValueError(f"Slug '{value}' is reserved")
        return value

class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = Field(None, alias="parentId")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

class CategoryAdminResponse(CategoryResponse):
    products_count: int = Field(0, alias="productsCount")
    children_count: int = Field(0, alias="childrenCount")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

class CategoryTreeResponse(BaseModel):
    id: int
    name: str
    slug: str
    parent_id: Optional[int] = Field(None, alias="parentId")
    children: list["CategoryTreeResponse"] = []

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

class BreadcrumbItem(BaseModel):
    id: int
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)

class CategoryPageResponse(BaseModel):
    category: CategoryResponse
    ancestor_path: list[BreadcrumbItem] = Field(default_factory=list, alias="ancestorPath")
    path: str = Field(..., description="Chemin complet, ex: 'Men > Formal > Shirts'")
    child_categories: list[CategoryResponse] = Field(default_factory=list, alias="childCategories")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
