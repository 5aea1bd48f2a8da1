"""AniList announcement feed adapter.

Queries the newest not-yet-released media and maps them to announcement
candidates.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from core.errors import TransportError
from core.models import Candidate, SourceKind
from core.ports import JsonTransport

LOGGER = logging.getLogger(__name__)

ANILIST_URL = "https://graphql.anilist.co"

ANNOUNCEMENTS_QUERY = """
query ($page: Int, $perPage: Int, $type: MediaType) {
  Page(page: $page, perPage: $perPage) {
    media(status: NOT_YET_RELEASED, type: $type, sort: ID_DESC) {
      title { romaji english }
      siteUrl
      format
      coverImage { large medium }
      startDate { year month day }
    }
  }
}
"""


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _block(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _format_start_date(start_date: Any) -> Optional[str]:
    """Render a partial date as YYYY, YYYY-MM or YYYY-MM-DD."""

    start_date = _block(start_date)
    year = start_date.get("year")
    if not isinstance(year, int) or isinstance(year, bool) or not year:
        return None
    parts = [f"{year:04d}"]
    for key in ("month", "day"):
        value = start_date.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or not value:
            break
        parts.append(f"{value:02d}")
    return "-".join(parts)


def media_to_candidate(media: dict) -> Optional[Candidate]:
    """Map one AniList media entry; None when it has no usable title."""

    title_block = _block(media.get("title"))
    title = _text(title_block.get("romaji")) or _text(title_block.get("english"))
    if not title:
        return None
    cover = _block(media.get("coverImage"))
    return Candidate(
        kind=SourceKind.ANNOUNCEMENT,
        title=title,
        url=_text(media.get("siteUrl")) or "",
        image_url=_text(cover.get("large")) or _text(cover.get("medium")),
        format=_text(media.get("format")),
        start_date=_format_start_date(media.get("startDate")),
    )


class AniListAnnouncementSource:
    """Newest upcoming titles of one media type."""

    name = "anilist"

    def __init__(
        self,
        transport: JsonTransport,
        per_page: int = 10,
        media_type: str = "ANIME",
        url: str = ANILIST_URL,
    ) -> None:
        self._transport = transport
        self._per_page = per_page
        self._media_type = media_type
        self._url = url

    async def fetch(self) -> List[Candidate]:
        data: Any = await self._transport.graphql(
            self._url,
            ANNOUNCEMENTS_QUERY,
            {"page": 1, "perPage": self._per_page, "type": self._media_type},
        )
        try:
            media_items = data["Page"]["media"]
        except (KeyError, TypeError) as exc:
            raise TransportError("Malformed AniList response") from exc
        if media_items is None:
            return []
        if not isinstance(media_items, list):
            raise TransportError("Malformed AniList response")

        candidates: List[Candidate] = []
        for media in media_items:
            candidate = media_to_candidate(media) if isinstance(media, dict) else None
            if candidate is None:
                LOGGER.debug("Skipping AniList entry without a title")
                continue
            candidates.append(candidate)
        return candidates
