import logging

from fastapi import FastAPI, Request
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api import *
from config import Settings, setup_logging
from lifespan import lifespan
from models import create_db_engine, create_session_factory, get_pool_status
from services import LocalImageStorage
from services.storage import UPLOADS_ROUTE
from utils.cache import TTLCache
from utils.errors import CatalogError, UpstreamError

logger = logging.getLogger(__name__)

async def catalog_error_handler(request: Request, exc: CatalogError):
    if isinstance(exc, UpstreamError):
        logger.error(f"Échec du collaborateur pendant {request.method} {request.url.path}: {exc.__cause__}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.key, "message": exc.message})

def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings)

    # Création de l'application FastAPI
    app = FastAPI(title="StyleStore catalog", lifespan=lifespan)

    # Clients construits une seule fois et partagés par référence
    app.state.settings = settings
    app.state.engine = create_db_engine(settings)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.cache = TTLCache(ttl_seconds=settings.cache_ttl_seconds)
    app.state.storage = LocalImageStorage(settings.upload_dir, settings.base_url, settings.max_upload_size)

    # Montage des fichiers uploadés
    app.mount(UPLOADS_ROUTE, StaticFiles(directory=app.state.storage.upload_dir), name="uploads")

    # Ajout des middlewares à l'application
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["HEAD", "GET", "POST", "PUT", "DELETE"],
        allow_headers=[
            "Content-Type",
            "Authorization",
            "Accept",
            "X-Requested-With",
        ]
    )

    app.add_exception_handler(CatalogError, catalog_error_handler)

    # Inclusion des routes API
    app.include_router(categories.router, prefix="/api", tags=["Categories"])
    app.include_router(products.router, prefix="/api", tags=["Products"])
    app.include_router(uploads.router, prefix="/api", tags=["Uploads"])

    @app.get("/")
    def root():
        return {"message": "API is running", "pool": get_pool_status(app.state.engine)}

    @app.head("/")
    def root_head():
        return {"message": "API is running"}

    return app

# Lancer le serveur Uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=8000)
