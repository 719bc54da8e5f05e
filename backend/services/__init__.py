"""
Services
Live price feed and analysis orchestration.
"""

from .price_feed import PriceFeedService, PriceFetchError, FeedStats
from .analysis import AnalysisService

__all__ = ["PriceFeedService", "PriceFetchError", "FeedStats", "AnalysisService"]
