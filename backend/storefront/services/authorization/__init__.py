from .policy import (
    AuthorizationPolicy,
    AuthorizationRule,
    Decision,
    authenticated,
    default_rules,
    path_matches,
    permit_all,
    require,
)

__all__ = [
    "AuthorizationPolicy",
    "AuthorizationRule",
    "Decision",
    "authenticated",
    "default_rules",
    "path_matches",
    "permit_all",
    "require",
]
