from . import BaseModel

class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int

def build_pagination(page: int, limit: int, total_items: int) -> Pagination:
    total_pages = (total_items + limit - 1) // limit  # Calcul du nombre total de pages
    return Pagination(currentPage=page, totalPages=total_pages, totalItems=total_items, itemsPerPage=limit)
