"""Safety module - rate limiting and the traffic governor."""

from .rate_limiter import SlidingWindowRateLimiter
from .governor import TrafficGovernor

__all__ = ["SlidingWindowRateLimiter", "TrafficGovernor"]
