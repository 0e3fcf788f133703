from config import get_error_key, get_error_message

class CatalogError(Exception):
    """Erreur de base du catalogue, porte une clé d'erreur (ex: 'categories.get.not_found')."""
    status_code = 500

    def __init__(self, key: str, message: str = None):
        self.key = key
        self.message = message or get_error_message(key)
        super().__init__(self.message)

    @classmethod
    def for_action(cls, category: str, subcategory: str, error_type: str = None):
        return cls(get_error_key(category, subcategory, error_type))

# Le slug ou l'id ne correspond à aucune ligne
class NotFoundError(CatalogError):
    status_code = 404

# Entrée invalide (bornes de prix, parent inconnu, slug déjà pris...)
class CatalogValidationError(CatalogError):
    status_code = 400

# Opération refusée par l'état courant (suppression bloquée, parent cyclique)
class ConflictError(CatalogError):
    status_code = 409

# La base de données (ou un autre collaborateur) a échoué
class UpstreamError(CatalogError):
    status_code = 503
