import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from models import Base

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = app.state.engine
    try:
        # Création des tables au démarrage
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Connexion réussie à la base de données")
    except Exception as e:
        logger.error(f"❌ Erreur de connexion à la base de données : {e}")
        raise

    yield  # Exécution normale de l'app

    # --- À l'arrêt ---
    app.state.cache.clear()
    engine.dispose()
    logger.info("Toutes les connexions ont été fermées")
