# Clients Package
from clients.live_feed import FeedError, LiveFeedClient

__all__ = ["FeedError", "LiveFeedClient"]
