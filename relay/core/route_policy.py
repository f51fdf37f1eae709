"""
Route access table.

Every relay route is either public or gated behind a valid API key. Entries
are given relative to API_PREFIX and the table is consulted once, when the
routers are mounted.
"""
import logging
from enum import Enum
from typing import Dict, Iterable

logger = logging.getLogger(__name__)


class RouteAccess(str, Enum):
    """Access level of a route."""
    PUBLIC = "public"
    GATED = "gated"


class RoutePolicy:
    """Maps full route paths to their access level; unknown paths are public."""

    def __init__(self, gated_routes: Iterable[str], prefix: str = ""):
        self.prefix = prefix.rstrip("/")
        self._table: Dict[str, RouteAccess] = {
            self._normalize(f"{self.prefix}{path}"): RouteAccess.GATED for path in gated_routes
        }

    @staticmethod
    def _normalize(path: str) -> str:
        return path.rstrip("/") or "/"

    def access_for(self, path: str) -> RouteAccess:
        return self._table.get(self._normalize(path), RouteAccess.PUBLIC)

    def is_gated(self, path: str) -> bool:
        return self.access_for(path) is RouteAccess.GATED

    def warn_unknown(self, known_routes: Iterable[str]) -> None:
        """Log gated entries that match no registered route."""
        known = {self._normalize(path) for path in known_routes}
        for path in self._table:
            if path not in known:
                logger.warning(f"GATED_ROUTES entry '{path}' does not match any registered route")
