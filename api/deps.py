from fastapi import Depends, Request
from sqlalchemy.orm import Session

from models import get_db
from services import CatalogService, LocalImageStorage, SqlCatalogRepository

def get_catalog(request: Request, db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(SqlCatalogRepository(db), request.app.state.cache)

def get_storage(request: Request) -> LocalImageStorage:
    return request.app.state.storage
