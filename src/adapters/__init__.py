"""Adapters package for anime-herald.

Adapters hold everything that talks to the outside world (AniList, Reddit,
Discord, Telegram, SQLite) and implement the ports defined in ``core``.
"""
