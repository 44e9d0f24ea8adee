"""
Database models for the link shortener.

A single table holds every shortened link; there is no separate analytics
storage, access counts live on the row itself.
"""

from .link import Link, new_link_id

__all__ = ["Link", "new_link_id"]
