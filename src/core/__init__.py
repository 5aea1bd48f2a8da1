"""Core domain package for anime-herald.

Core contains candidate models, classification, deduplication and the poll
cycle without any feed, chat or storage-specific code, keeping the business
logic portable.
"""
