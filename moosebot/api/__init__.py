"""Remote moose service client."""

from .moose import MooseAPI, SearchResult  # noqa: F401

__all__ = ["MooseAPI", "SearchResult"]
