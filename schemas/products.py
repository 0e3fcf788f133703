from . import BaseModel, ConfigDict, Field, Optional, datetime, field_validator, Pagination
from .categories import BreadcrumbItem, validate_slug

class ProductImageResponse(BaseModel):
    id: int
    url: str
    position: int = 0

    model_config = ConfigDict(from_attributes=True)

class ProductResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: str
    price: float
    inventory: int
    featured: bool = False
    category_id: int = Field(..., alias="categoryId", description="ID de la catégorie du produit")
    category: Optional[BreadcrumbItem] = None
    images: list[ProductImageResponse] = []
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

class ProductsResponse(BaseModel):
    products: list[ProductResponse]
    pagination: Pagination

# ✅ Nouveautés regroupées par catégorie
class NewArrivalsCategory(BaseModel):
    id: int
    name: str
    slug: str
    products: list[ProductResponse] = []

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=128)
    slug: str = Field(..., min_length=3, max_length=160)
    description: str = Field(..., min_length=10)
    price: float = Field(..., gt=0)
    inventory: int = Field(..., ge=0)
    featured: bool = False
    category_id: int = Field(..., alias="categoryId", gt=0)
    images: list[str] = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("slug")
    @classmethod
    def check_slug(cls, value: str) -> str:
        return validate_slug(value)

    @field_validator("images", mode="before")
    @classmethod
    def normalize_images(cls, value):
        # Accepte des URLs brutes ou des objets {"url": ...}
        if not isinstance(value, list):
            return value
        urls = []
        for image in value:
            url = image.get("url") if isinstance(image, dict) else image
            if isinstance(url, str) and url.strip():
                urls.append(url.strip())
        return urls

class ProductUpdate(ProductCreate):
    # Si absent, les images existantes sont conservées
    images: Optional[list[str]] = None
