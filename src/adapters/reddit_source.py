"""Reddit listing adapter for discussion and dub feeds."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from core.errors import TransportError
from core.models import Candidate, SourceKind
from core.ports import JsonTransport

LOGGER = logging.getLogger(__name__)

REDDIT_BASE = "https://www.reddit.com"


def listing_url(subreddit: str, limit: int) -> str:
    return f"{REDDIT_BASE}/r/{subreddit}/new.json?limit={limit}"


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def post_to_candidate(post: dict, kind: SourceKind) -> Optional[Candidate]:
    """Map one listing entry; None when the title or timestamp is missing or mistyped."""

    title = _text(post.get("title"))
    created_at = post.get("created_utc")
    if not title or isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
        return None

    permalink = _text(post.get("permalink"))
    url = f"{REDDIT_BASE}{permalink}" if permalink.startswith("/") else permalink
    subreddit = post.get("subreddit")
    return Candidate(
        kind=kind,
        title=title,
        url=url,
        # Link posts carry the real target here; self posts only have a thumbnail.
        image_url=_text(post.get("url_overridden_by_dest")) or _text(post.get("thumbnail")) or None,
        subreddit=subreddit if isinstance(subreddit, str) else None,
        created_at=float(created_at),
    )


def _listing_posts(payload: Any, subreddit: str) -> List[dict]:
    try:
        children = payload["data"]["children"]
    except (KeyError, TypeError) as exc:
        raise TransportError(f"Malformed listing for r/{subreddit}") from exc
    if children is None:
        return []
    if not isinstance(children, list):
        raise TransportError(f"Malformed listing for r/{subreddit}")
    posts = []
    for child in children:
        data = child.get("data") if isinstance(child, dict) else None
        if isinstance(data, dict):
            posts.append(data)
    return posts


class RedditListingSource:
    """Newest posts of one or more subreddits, fetched in turn.

    A subreddit that fails is skipped; the source only fails when none of
    its subreddits answered.
    """

    def __init__(
        self,
        transport: JsonTransport,
        subreddits: Iterable[str],
        kind: SourceKind,
        limit: int,
        name: Optional[str] = None,
    ) -> None:
        self._transport = transport
        self._subreddits = list(subreddits)
        self._kind = kind
        self._limit = limit
        self.name = name or f"reddit:{kind.value}"

    async def fetch(self) -> List[Candidate]:
        candidates: List[Candidate] = []
        errors: List[TransportError] = []
        for subreddit in self._subreddits:
            try:
                payload = await self._transport.get_json(listing_url(subreddit, self._limit))
                posts = _listing_posts(payload, subreddit)
            except TransportError as exc:
                LOGGER.warning("Skipping r/%s this cycle: %s", subreddit, exc)
                errors.append(exc)
                continue
            for post in posts:
                candidate = post_to_candidate(post, self._kind)
                if candidate is None:
                    LOGGER.debug("Skipping malformed post in r/%s", subreddit)
                    continue
                candidates.append(candidate)
        if errors and len(errors) == len(self._subreddits):
            raise errors[-1]
        return candidates


def discussion_source(transport: JsonTransport, subreddit: str = "anime", limit: int = 15) -> RedditListingSource:
    return RedditListingSource(transport, [subreddit], SourceKind.DISCUSSION, limit, name="reddit:discussion")


def dub_source(
    transport: JsonTransport,
    subreddits: Iterable[str] = ("Animedubs", "DubbedAnime", "anime_latino"),
    limit: int = 8,
) -> RedditListingSource:
    return RedditListingSource(transport, subreddits, SourceKind.DUB, limit, name="reddit:dub")
