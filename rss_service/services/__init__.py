"""
Service layer for the RSS service.
"""

from .feed_service import FeedService, FeedResult, MutationResult

__all__ = ["FeedService", "FeedResult", "MutationResult"]
