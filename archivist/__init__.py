"""
Archivist Backend

A FastAPI service that re-publishes a read-only HTML archive
(categories, entries, chapters) as a paginated, filterable,
user-aware resource API.
"""

__version__ = "1.0.0"
