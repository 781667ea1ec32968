"""
Network services package.

- tree_service: binary tree placement and volume roll-up
- rank_service: rank thresholds and bulk refresh
"""

from app.services.network.rank_service import RankService, rank_for
from app.services.network.tree_service import TreeService

__all__ = [
    "RankService",
    "TreeService",
    "rank_for",
]
