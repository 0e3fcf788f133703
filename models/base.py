import logging

from fastapi import Request
from sqlalchemy import create_engine, Engine, Pool
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import StaticPool

from config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Création du moteur à partir des paramètres (plus de singleton au niveau du module)
def create_db_engine(settings: Settings) -> Engine:
    url = settings.database_url
    if not url:
        logger.error("❌ La variable d'environnement 'DATABASE_URL' n'est pas définie.")
        raise ValueError("DATABASE_URL non défini.")

    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url == "sqlite://":
            # Une seule connexion partagée, sinon chaque session voit une base vide
            options["poolclass"] = StaticPool
        return create_engine(url, **options)

    # Configuration du pool de connexions
    return create_engine(
        url,
        pool_size=20,            # Gérer les pics de trafic
        max_overflow=40,
        pool_timeout=90,         # Temps d'attente avant échec de la connexion
        pool_recycle=300,        # Recycle les connexions inactives (ex: après 5 minutes)
        pool_pre_ping=True,      # Vérifie que la connexion est active
    )

def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Dépendance FastAPI : une session par requête
def get_db(request: Request):
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

# Fonction utilitaire pour surveiller l'état du pool
def get_pool_status(engine: Engine):
    """Renvoie l'état actuel du pool de connexions"""
    pool: Pool = engine.pool
    if not hasattr(pool, "checkedout"):
        return {"pool": type(pool).__name__}
    return {
        "size": pool.size(),
        "checkedin": pool.checkedin(),
        "checkedout": pool.checkedout(),
        "overflow": pool.overflow(),
    }

# Sauvegarde dans la db avec gestion d'erreur robuste
def save_to_db(self, db: Session):
    try:
        db.add(self)
        db.commit()
        db.refresh(self)
    except Exception as e:
        db.rollback()
        logger.error(f"Erreur lors de la sauvegarde : {e}")
        raise e

def update_to_db(self, db: Session):
    try:
        db.commit()
        db.refresh(self)
    except Exception as e:
        db.rollback()
        logger.error(f"Erreur lors de la mise à jour : {e}")
        raise e

# Suppression de la db avec gestion d'erreur robuste
def delete_from_db(self, db: Session):
    try:
        db.delete(self)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Erreur lors de la suppression : {e}")
        raise e
