from json import load
from logging import basicConfig, getLevelName
from os import getenv
from os.path import abspath, dirname, join
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Charger les variables d'environnement
load_dotenv()

BASE_DIR = dirname(abspath(__file__))

# Extensions et types MIME autorisés pour les images produits
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
IMAGE_CONTENT_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

# Chargement des messages d'erreur
with open(join(BASE_DIR, "errors.json"), "r", encoding="utf-8") as f:
    ERROR_MESSAGES = load(f)

def get_error_key(category, subcategory, error_type=None):
    """Fonction utilitaire pour obtenir les clés d'erreur"""
    if error_type:
        return f"{category}.{subcategory}.{error_type}"
    return f"{category}.{subcategory}"

def get_error_message(key: str) -> str:
    """Retourne le message lisible associé à une clé d'erreur (ou la clé elle-même)."""
    node = ERROR_MESSAGES
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return key
        node = node[part]
    return node if isinstance(node, str) else key

def _split(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]

# ✅ Paramètres de l'application, construits une seule fois au démarrage
class Settings(BaseModel):
    database_url: str = "sqlite:///./stylestore.db"
    base_url: str = "http://localhost:8000"
    upload_dir: str = join(BASE_DIR, "uploads")
    max_upload_size: int = 10 * 1024 * 1024  # 10 Mo
    cache_ttl_seconds: float = 300.0  # 5 minutes
    allowed_origins: list[str] = ["http://localhost:3000"]
    allowed_hosts: list[str] = ["*"]
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_hours: int = 12
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "database_url": getenv("DATABASE_URL"),
            "base_url": getenv("BASE_URL"),
            "upload_dir": getenv("UPLOAD_DIR"),
            "max_upload_size": getenv("MAX_UPLOAD_SIZE"),
            "cache_ttl_seconds": getenv("CACHE_TTL_SECONDS"),
            "allowed_origins": _split(getenv("ALLOWED_ORIGINS")) or None,
            "allowed_hosts": _split(getenv("ALLOWED_HOSTS")) or None,
            "secret_key": getenv("SECRET_KEY"),
            "algorithm": getenv("ALGORITHM"),
            "access_token_expire_hours": getenv("ACCESS_TOKEN_EXPIRE_HOURS"),
            "log_level": getenv("LOG_LEVEL"),
        }
        # Les variables absentes gardent leur valeur par défaut
        return cls(**{key: value for key, value in values.items() if value is not None})

def setup_logging(settings: Settings):
    """Configuration du logger"""
    level = getLevelName(settings.log_level.upper())
    basicConfig(
        level=level if isinstance(level, int) else "INFO",
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
