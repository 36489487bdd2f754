from .dto import RateLimitPolicy, RateLimitSettings
from .service import RateLimiter, resolve_client_ip

__all__ = ["RateLimitPolicy", "RateLimitSettings", "RateLimiter", "resolve_client_ip"]
