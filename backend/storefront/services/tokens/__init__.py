from .dto import ACCESS, REFRESH, TokenClaims, TokenPair, TokenSettings
from .service import TokenService

__all__ = ["ACCESS", "REFRESH", "TokenClaims", "TokenPair", "TokenService", "TokenSettings"]
