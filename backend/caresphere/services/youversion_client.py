"""
YouVersion Platform API client

Async HTTP client for Bible content. Every call is bearer-authenticated
with YOUVERSION_API_KEY and returns a fixed pydantic type no matter which
envelope the endpoint used ({"data": ...}, {"verses": ...}, a bare
array or object).

Reference formats are USFM dot notation: "GEN.1.1", "JHN.3.16-18",
chapters as "JHN.3".
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from caresphere.core.config import settings
from caresphere.core.errors import ConfigurationError, NotFoundError, UpstreamError
from caresphere.schemas.bible import (
    Book,
    Chapter,
    ProviderVerseOfDay,
    SearchResult,
    Verse,
    Version,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "YouVersion"

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class DecodedEnvelope:
    """Result of matching a response against the known envelope shapes"""
    shape: str  # "keyed" or "bare"
    key: Optional[str]
    value: Any


def decode_envelope(payload: Any, keys: Sequence[str], bare_type: Type) -> DecodedEnvelope:
    """
    Match `payload` against prioritized envelope shapes.

    Each key in `keys` is tried in order against a JSON object; the first
    non-null value wins. Failing that, the payload itself is accepted when
    it is a `bare_type` (list for collections, dict for single objects).
    """
    if isinstance(payload, dict):
        for key in keys:
            if payload.get(key) is not None:
                return DecodedEnvelope(shape="keyed", key=key, value=payload[key])
    if isinstance(payload, bare_type):
        return DecodedEnvelope(shape="bare", key=None, value=payload)
    raise UpstreamError(
        PROVIDER_NAME,
        200,
        f"unexpected response shape, expected one of {list(keys)} or a bare {bare_type.__name__}",
    )


def parse_provider(model: Type[M], value: Any) -> M:
    """Validate one provider object; a mismatch is reported as an upstream error"""
    try:
        return model.model_validate(value)
    except PydanticValidationError as e:
        raise UpstreamError(
            PROVIDER_NAME,
            200,
            f"invalid {model.__name__} in response ({e.error_count()} validation errors)",
        )


class YouVersionClient:
    """Thin typed wrapper over the YouVersion REST endpoints"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.YOUVERSION_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.YOUVERSION_API_URL).rstrip("/")
        self.transport = transport

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "YOUVERSION_API_KEY is not configured. "
                "Register at https://platform.youversion.com/platform/apps"
            )
        return self.api_key

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        api_key = self._require_api_key()
        url = f"{self.base_url}{path}"

        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.get(
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )

        if response.status_code == 404:
            raise NotFoundError("Bible resource")
        if not response.is_success:
            logger.warning(f"YouVersion {path} returned {response.status_code}")
            raise UpstreamError(PROVIDER_NAME, response.status_code, response.text)

        return response.json()

    async def get_translations(self, language_tag: Optional[str] = None) -> List[Version]:
        params = {"language_tag": language_tag} if language_tag else {}
        data = await self._get("/bible/versions", params)
        decoded = decode_envelope(data, ("versions", "data"), list)
        return [parse_provider(Version, item) for item in decoded.value]

    async def get_books(self, translation_id: str) -> List[Book]:
        data = await self._get("/bible/books", {"version_id": translation_id})
        decoded = decode_envelope(data, ("books", "data"), list)
        return [parse_provider(Book, item) for item in decoded.value]

    async def get_verse(self, reference: str, translation_id: str) -> Verse:
        data = await self._get("/bible/verse", {"id": reference, "version_id": translation_id})
        decoded = decode_envelope(data, ("verse", "data"), dict)
        return parse_provider(Verse, decoded.value)

    async def get_passage(self, reference: str, translation_id: str) -> List[Verse]:
        data = await self._get("/bible/verses", {"reference": reference, "version_id": translation_id})
        decoded = decode_envelope(data, ("verses", "data"), list)
        return [parse_provider(Verse, item) for item in decoded.value]

    async def get_chapter(self, chapter_id: str, translation_id: str) -> Chapter:
        book_id, chapter_number = split_chapter_id(chapter_id)
        data = await self._get(
            "/bible/chapter",
            {"book_id": book_id, "chapter": chapter_number, "version_id": translation_id},
        )
        decoded = decode_envelope(data, ("chapter", "data"), dict)
        return parse_provider(Chapter, decoded.value)

    async def search(self, query: str, translation_id: str, limit: int = 10, offset: int = 0) -> SearchResult:
        data = await self._get(
            "/bible/search",
            {
                "query": query,
                "version_id": translation_id,
                "limit": str(limit),
                "offset": str(offset),
            },
        )
        if isinstance(data, list):
            items: List[Any] = data
            total = len(data)
        else:
            items = []
            for key in ("verseItems", "verses", "data"):
                if data.get(key) is not None:
                    items = data[key]
                    break
            total = data.get("total") or 0
        return SearchResult(
            total=total,
            verseItems=[parse_provider(Verse, item) for item in items],
        )

    async def get_verse_of_the_day(self, translation_id: str) -> ProviderVerseOfDay:
        data = await self._get("/bible/verse_of_the_day", {"version_id": translation_id})
        decoded = decode_envelope(data, ("day", "data"), dict)
        return parse_provider(ProviderVerseOfDay, decoded.value)


def split_chapter_id(chapter_id: str) -> Tuple[str, str]:
    """"JHN.3" -> ("JHN", "3"); a bare book id means chapter 1"""
    parts = chapter_id.split(".")
    book_id = parts[0]
    chapter_number = parts[1] if len(parts) > 1 and parts[1] else "1"
    return book_id, chapter_number
