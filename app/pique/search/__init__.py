"""Cached, cancellable search."""

from pique.search.service import SearchFunction, SearchService

__all__ = ["SearchFunction", "SearchService"]
