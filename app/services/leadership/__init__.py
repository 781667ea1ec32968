"""
Leadership pool services package.
"""

from app.services.leadership.pool_distributor import LeadershipPoolDistributor

__all__ = ["LeadershipPoolDistributor"]
