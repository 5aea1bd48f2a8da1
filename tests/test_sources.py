from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from adapters.anilist_source import ANILIST_URL, AniListAnnouncementSource
from adapters.reddit_source import discussion_source, dub_source, listing_url
from core.errors import TransportError
from core.models import SourceKind


class FakeTransport:
    def __init__(self, json_by_url: Optional[Dict[str, Any]] = None, graphql_data: Any = None) -> None:
        self._json_by_url = json_by_url or {}
        self._graphql_data = graphql_data
        self.requested: List[str] = []
        self.graphql_calls: List[tuple] = []

    async def get_json(self, url: str) -> Any:
        self.requested.append(url)
        if url not in self._json_by_url:
            raise TransportError(f"HTTP 404 from {url}")
        return self._json_by_url[url]

    async def graphql(self, url: str, query: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        self.graphql_calls.append((url, query, variables))
        return self._graphql_data


def _listing(*posts: dict) -> dict:
    return {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": post} for post in posts]}}


def test_anilist_maps_titles_and_metadata() -> None:
    data = {
        "Page": {
            "media": [
                {
                    "title": {"romaji": "Sousou no Frieren 2nd Season", "english": "Frieren Season 2"},
                    "siteUrl": "https://anilist.co/anime/1",
                    "format": "TV",
                    "coverImage": {"large": "https://s4.anilist.co/large.jpg", "medium": "https://s4.anilist.co/m.jpg"},
                    "startDate": {"year": 2026, "month": 1, "day": None},
                },
                {
                    "title": {"romaji": None, "english": "English Only"},
                    "siteUrl": "https://anilist.co/anime/2",
                    "format": "MOVIE",
                    "coverImage": {"large": None, "medium": "https://s4.anilist.co/medium.png"},
                    "startDate": {"year": None},
                },
                {"title": {"romaji": None, "english": None}, "siteUrl": "https://anilist.co/anime/3"},
            ]
        }
    }
    transport = FakeTransport(graphql_data=data)

    candidates = asyncio.run(AniListAnnouncementSource(transport).fetch())

    assert [candidate.title for candidate in candidates] == ["Sousou no Frieren 2nd Season", "English Only"]
    first, second = candidates
    assert first.kind is SourceKind.ANNOUNCEMENT
    assert first.url == "https://anilist.co/anime/1"
    assert first.image_url == "https://s4.anilist.co/large.jpg"
    assert first.format == "TV"
    assert first.start_date == "2026-01"
    assert second.image_url == "https://s4.anilist.co/medium.png"
    assert second.start_date is None


def test_anilist_query_parameters() -> None:
    transport = FakeTransport(graphql_data={"Page": {"media": []}})

    asyncio.run(AniListAnnouncementSource(transport).fetch())

    url, query, variables = transport.graphql_calls[0]
    assert url == ANILIST_URL
    assert "NOT_YET_RELEASED" in query
    assert "ID_DESC" in query
    assert variables == {"page": 1, "perPage": 10, "type": "ANIME"}


def test_anilist_malformed_response_raises() -> None:
    transport = FakeTransport(graphql_data={"unexpected": True})
    with pytest.raises(TransportError):
        asyncio.run(AniListAnnouncementSource(transport).fetch())


def test_discussion_maps_every_post() -> None:
    url = listing_url("anime", 15)
    payload = _listing(
        {
            "title": "Random daily discussion thread",
            "permalink": "/r/anime/comments/abc/random/",
            "subreddit": "anime",
            "created_utc": 1700000000.0,
            "thumbnail": "self",
        },
        {
            "title": "Oshi no Ko movie trailer",
            "permalink": "/r/anime/comments/def/trailer/",
            "subreddit": "anime",
            "created_utc": 1700000100.0,
            "url_overridden_by_dest": "https://i.redd.it/poster.png",
            "thumbnail": "https://b.thumbs.redditmedia.com/t.jpg",
        },
        {"title": "", "created_utc": 1700000200.0},
        {"title": "No timestamp"},
    )
    transport = FakeTransport({url: payload})

    candidates = asyncio.run(discussion_source(transport).fetch())

    assert transport.requested == ["https://www.reddit.com/r/anime/new.json?limit=15"]
    assert len(candidates) == 2
    first, second = candidates
    assert first.kind is SourceKind.DISCUSSION
    assert first.url == "https://www.reddit.com/r/anime/comments/abc/random/"
    assert first.created_at == 1700000000.0
    assert first.image_url == "self"
    assert second.image_url == "https://i.redd.it/poster.png"
    assert second.subreddit == "anime"


def test_dub_source_concatenates_feeds_in_order() -> None:
    subreddits = ["Animedubs", "DubbedAnime", "anime_latino"]
    payloads = {
        listing_url(name, 8): _listing(
            {
                "title": f"{name} dub news",
                "permalink": f"/r/{name}/comments/{index}/",
                "subreddit": name,
                "created_utc": 1700000000 + index,
            }
        )
        for index, name in enumerate(subreddits)
    }
    transport = FakeTransport(payloads)

    candidates = asyncio.run(dub_source(transport, subreddits).fetch())

    assert [candidate.subreddit for candidate in candidates] == subreddits
    assert all(candidate.kind is SourceKind.DUB for candidate in candidates)
    assert all(url.endswith("limit=8") for url in transport.requested)


def test_reddit_failure_propagates_to_the_cycle() -> None:
    transport = FakeTransport({})
    with pytest.raises(TransportError):
        asyncio.run(discussion_source(transport).fetch())


def test_reddit_malformed_listing_raises() -> None:
    transport = FakeTransport({listing_url("anime", 15): {"error": 429}})
    with pytest.raises(TransportError):
        asyncio.run(discussion_source(transport).fetch())


def test_reddit_skips_posts_with_wrong_typed_fields() -> None:
    url = listing_url("anime", 15)
    payload = {
        "data": {
            "children": [
                {"data": {"title": 123, "created_utc": 1.0}},
                {"data": {"title": "Trailer", "permalink": 5, "created_utc": 2.0}},
                {"data": {"title": "No time", "created_utc": "yesterday"}},
                {"data": "not a post"},
                "not a child",
                {"data": {"title": "Sequel announced", "permalink": "/r/anime/x/", "created_utc": 3}},
            ]
        }
    }
    transport = FakeTransport({url: payload})

    candidates = asyncio.run(discussion_source(transport).fetch())

    assert [candidate.title for candidate in candidates] == ["Trailer", "Sequel announced"]
    assert candidates[0].url == ""
    assert candidates[1].url == "https://www.reddit.com/r/anime/x/"


def test_reddit_children_of_wrong_type_raise_transport_error() -> None:
    transport = FakeTransport({listing_url("anime", 15): {"data": {"children": 7}}})
    with pytest.raises(TransportError):
        asyncio.run(discussion_source(transport).fetch())


def test_dub_source_keeps_subreddits_that_answered() -> None:
    subreddits = ["Animedubs", "DubbedAnime", "anime_latino"]
    payloads = {
        listing_url("Animedubs", 8): _listing({"title": "Dub cast", "created_utc": 1700000000}),
        listing_url("anime_latino", 8): _listing({"title": "Doblaje latino", "created_utc": 1700000001}),
    }
    transport = FakeTransport(payloads)

    candidates = asyncio.run(dub_source(transport, subreddits).fetch())

    assert [candidate.title for candidate in candidates] == ["Dub cast", "Doblaje latino"]
    assert len(transport.requested) == 3


def test_anilist_skips_entries_with_wrong_typed_fields() -> None:
    data = {
        "Page": {
            "media": [
                {"title": "Just a string"},
                {"title": {"romaji": 42, "english": None}},
                "not a media entry",
                {
                    "title": {"romaji": 7, "english": "Kept"},
                    "siteUrl": 3,
                    "format": ["TV"],
                    "coverImage": "https://s4.anilist.co/raw.jpg",
                    "startDate": {"year": "2026", "month": 1},
                },
            ]
        }
    }
    transport = FakeTransport(graphql_data=data)

    candidates = asyncio.run(AniListAnnouncementSource(transport).fetch())

    assert len(candidates) == 1
    kept = candidates[0]
    assert kept.title == "Kept"
    assert kept.url == ""
    assert kept.format is None
    assert kept.image_url is None
    assert kept.start_date is None


def test_anilist_media_of_wrong_type_raises_transport_error() -> None:
    transport = FakeTransport(graphql_data={"Page": {"media": {"id": 1}}})
    with pytest.raises(TransportError):
        asyncio.run(AniListAnnouncementSource(transport).fetch())
