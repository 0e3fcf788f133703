import logging
import os
import secrets
import time
from typing import Optional

from config import IMAGE_CONTENT_TYPES, IMAGE_EXTENSIONS
from utils.errors import CatalogValidationError

logger = logging.getLogger(__name__)

UPLOADS_ROUTE = "/uploads"
CHUNK_SIZE = 64 * 1024

class LocalImageStorage:
    """Stockage des images produits sur disque, servies par StaticFiles sous /uploads."""

    def __init__(self, upload_dir: str, base_url: str, max_size: int):
        self.upload_dir = os.path.abspath(upload_dir)
        self.base_url = base_url.rstrip("/")
        self.max_size = max_size
        os.makedirs(os.path.join(self.upload_dir, "products"), exist_ok=True)

    @staticmethod
    def generate_key(filename: str) -> str:
        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        return f"products/{int(time.time() * 1000)}-{secrets.token_hex(6)}.{extension}"

    def public_url(self, key: str) -> str:
        return f"{self.base_url}{UPLOADS_ROUTE}/{key}"

    def validate(self, filename: Optional[str], content_type: Optional[str]):
        filename = (filename or "").lower()
        file_extension = filename.rsplit(".", 1)[-1] if "." in filename else ""
        if file_extension not in IMAGE_EXTENSIONS or content_type not in IMAGE_CONTENT_TYPES:
            raise CatalogValidationError.for_action("uploads", "create", "unsupported_format")

    def save(self, filename: Optional[str], content_type: Optional[str], fileobj) -> dict:
        self.validate(filename, content_type)
        key = self.generate_key(filename)
        file_location = self._path_for(key)

        # Copie par blocs pour pouvoir s'arrêter dès que la taille maximale est dépassée
        written = 0
        try:
            with open(file_location, "wb") as buffer:
                while True:
                    chunk = fileobj.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_size:
                        break
                    buffer.write(chunk)
        except Exception as e:
            # Pas de fichier partiel laissé sur le disque
            if os.path.exists(file_location):
                os.remove(file_location)
            logger.error(f"Erreur lors de l'écriture de {key} : {e}")
            raise

        if written == 0 or written > self.max_size:
            os.remove(file_location)
            error_type = "empty" if written == 0 else "too_large"
            raise CatalogValidationError.for_action("uploads", "create", error_type)

        logger.info(f"Image enregistrée : {key} ({written} octets)")
        return {"key": key, "url": self.public_url(key)}

    def key_from_url(self, url: str) -> Optional[str]:
        for prefix in (f"{self.base_url}{UPLOADS_ROUTE}/", f"{UPLOADS_ROUTE}/"):
            if url.startswith(prefix):
                return url[len(prefix):].split("?", 1)[0]
        return None

    def delete_by_url(self, url: str) -> bool:
        """Supprime le fichier si l'URL pointe vers ce stockage. Les URLs externes sont ignorées."""
        key = self.key_from_url(url)
        if not key:
            return False
        try:
            path = self._path_for(key)
        except CatalogValidationError:
            return False
        if not os.path.isfile(path):
            return False
        os.remove(path)
        logger.info(f"Image supprimée : {key}")
        return True

    def _path_for(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.upload_dir, key))
        # Empêche de sortir du dossier d'upload (ex: '../')
        if os.path.commonpath([path, self.upload_dir]) != self.upload_dir:
            raise CatalogValidationError.for_action("uploads", "create", "unsupported_format")
        return path
