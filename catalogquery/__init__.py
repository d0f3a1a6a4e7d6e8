"""Catalog query service.

Builds product filters for a hierarchical catalog and serves list,
count and group-count queries on top of them.
"""

__version__ = "0.1.0"
