"""
Scryfall set catalog.

API: https://scryfall.com/docs/api/sets
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

import httpx

from .divider_card import set_type_label
from .errors import CatalogError
from .models import CardRecord

logger = logging.getLogger(__name__)


SCRYFALL_API_BASE = "https://api.scryfall.com"
SCRYFALL_HEADERS = {"User-Agent": "MTGDividerCards/0.1", "Accept": "application/json"}

MAX_SUGGESTIONS = 10


class ScryfallClient:
    """Looks up MTG sets on Scryfall."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = SCRYFALL_API_BASE,
    ) -> None:
        self.client = client or httpx.AsyncClient(timeout=30.0, headers=SCRYFALL_HEADERS)
        self.base_url = base_url.rstrip("/")

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "ScryfallClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _get(self, path: str) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s", url)
        try:
            response = await self.client.get(url)
        except httpx.TransportError as e:
            raise CatalogError("Could not connect to the Scryfall API.") from e

        if response.status_code == 404:
            raise CatalogError("Set code not found. Please check the input.")
        if not response.is_success:
            raise CatalogError(f"Server error: {response.status_code} - {response.reason_phrase}")
        return response.json()

    async def get_all_sets(self) -> List[CardRecord]:
        """All sets known to Scryfall, in the API's order."""
        payload = await self._get("/sets")
        return [CardRecord.from_scryfall(item) for item in payload.get("data", [])]

    async def get_set_by_code(self, code: str) -> CardRecord:
        """
        Look up one set by its code (case-insensitive).

        Raises:
            CatalogError: If the code is unknown or the API is unreachable
        """
        code = code.strip()
        if not code:
            raise CatalogError("Please enter a set code.")
        payload = await self._get(f"/sets/{code.lower()}")
        return CardRecord.from_scryfall(payload)


def search_sets(
    sets: Iterable[CardRecord],
    query: str,
    set_type: str = "all",
    limit: int = MAX_SUGGESTIONS,
) -> List[CardRecord]:
    """
    Autocomplete suggestions: sets whose code, name or release date contain
    the query, optionally restricted to one set type.
    """
    query = query.strip().lower()
    if not query:
        return []

    matches = [
        s
        for s in sets
        if query in s.code.lower() or query in s.name.lower() or query in s.released_at
    ]
    if set_type != "all":
        matches = [s for s in matches if s.set_type == set_type]
    return matches[:limit]


def set_type_choices(sets: Iterable[CardRecord]) -> List[Tuple[str, str]]:
    """(value, label) pairs for the set type filter, `all` first."""
    types = {s.set_type for s in sets}
    choices = sorted(((t, set_type_label(t)) for t in types), key=lambda c: c[1].lower())
    return [("all", "All set types")] + choices
