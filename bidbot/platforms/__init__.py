"""
Freelance platform API access for bidbot.
"""
from .client import (
    PlatformClient,
    PlatformError,
    PlatformNotConfigured,
    RateLimitExceeded,
    TokenBucket,
)

__all__ = [
    "PlatformClient",
    "PlatformError",
    "PlatformNotConfigured",
    "RateLimitExceeded",
    "TokenBucket",
]
