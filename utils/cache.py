import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

class TTLCache:
    """
    Cache mémoire clé -> valeur avec durée de vie fixe.

    Un seul chargement par clé à la fois : un second appelant pour une clé en cours
    de chargement attend le même résultat au lieu de relancer la requête. Un échec
    n'est jamais mis en cache et remonte à tous les appelants en attente.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._pending: Dict[str, asyncio.Future] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any):
        self._entries[key] = (self._clock(), value)

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]], force_refresh: bool = False) -> Any:
        if not force_refresh:
            entry = self._entries.get(key)
            if entry is not None and self._clock() - entry[0] <= self.ttl_seconds:
                return entry[1]

        pending = self._pending.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            logger.debug(f"Chargement de la clé de cache '{key}'")
            value = await loader()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Marque l'exception comme récupérée si personne n'attend
            future.exception()
            raise
        else:
            self.set(key, value)
            future.set_result(value)
            return value
        finally:
            if self._pending.get(key) is future:
                del self._pending[key]

    def invalidate(self, key: str):
        self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str):
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]

    def clear(self):
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
