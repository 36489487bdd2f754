from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping

from storefront.services._shared.ports import KeyValueCache
from storefront.services.rate_limit.dto import RateLimitPolicy, RateLimitSettings

log = logging.getLogger(__name__)

MINUTE = 60
HOUR = 3600


def resolve_client_ip(headers: Mapping[str, str], remote_addr: str | None) -> str:
    """
    Identify the caller for rate-limit keys.

    Order: first entry of ``X-Forwarded-For``, then ``X-Real-IP``, then the
    transport peer. The first non-empty value wins.
    """
    forwarded = (headers.get("X-Forwarded-For") or "").strip()
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (headers.get("X-Real-IP") or "").strip()
    if real_ip:
        return real_ip
    return remote_addr or "unknown"


class RateLimiter:
    """
    Fixed-window counters per client key.

    * LOGIN: one counter per IP (``rate_limit:login:<ip>``). A request is
      rejected once the counter reaches the ceiling; every allowed attempt
      increments it and re-arms the window TTL, so the lockout lasts until a
      full window passes without allowed attempts.
    * API: a minute and an hour counter keyed by window index. Both are read
      before either is incremented; a breach leaves both untouched.

    The read-then-increment sequence is not atomic as a whole. Concurrent
    callers at the boundary may overshoot the ceiling by the number of
    in-flight requests. Each increment itself is atomic in the cache.
    """

    def __init__(
        self,
        *,
        cache: KeyValueCache,
        settings: RateLimitSettings | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.cache = cache
        self.settings = settings or RateLimitSettings()
        self._clock = clock or (lambda: time.time())

    # ------------------------------------------------------------------ #
    # Policy selection
    # ------------------------------------------------------------------ #

    def select_policy(self, path: str) -> RateLimitPolicy:
        s = self.settings
        if path.startswith(s.static_prefixes):
            return RateLimitPolicy.EXEMPT
        if path in s.auth_paths:
            return RateLimitPolicy.LOGIN
        if path.startswith(s.api_prefix):
            return RateLimitPolicy.API
        return RateLimitPolicy.EXEMPT

    # ------------------------------------------------------------------ #
    # Keys
    # ------------------------------------------------------------------ #

    def login_key(self, client_key: str) -> str:
        return f"{self.settings.key_prefix}login:{client_key}"

    def minute_key(self, client_key: str, now: float | None = None) -> str:
        now = self._clock() if now is None else now
        return f"{self.settings.key_prefix}minute:{client_key}:{int(now // MINUTE)}"

    def hour_key(self, client_key: str, now: float | None = None) -> str:
        now = self._clock() if now is None else now
        return f"{self.settings.key_prefix}hour:{client_key}:{int(now // HOUR)}"

    # ------------------------------------------------------------------ #
    # Gate
    # ------------------------------------------------------------------ #

    def check_and_consume(self, client_key: str, policy: RateLimitPolicy) -> bool:
        """
        Return ``True`` when the request may proceed, consuming one unit.

        :param client_key: Resolved client address.
        :param policy: Counters to apply (see :meth:`select_policy`).
        """
        if not self.settings.enabled or policy is RateLimitPolicy.EXEMPT:
            return True
        if policy is RateLimitPolicy.LOGIN:
            return self._consume_login(client_key)
        return self._consume_api(client_key)

    def reset_login_attempts(self, client_key: str) -> None:
        """Forget login attempts for ``client_key`` (after a successful login)."""
        self.cache.delete(self.login_key(client_key))

    def _count(self, key: str) -> int:
        raw = self.cache.get(key)
        return int(raw) if raw is not None else 0

    def _consume_login(self, client_key: str) -> bool:
        key = self.login_key(client_key)
        if self._count(key) >= self.settings.login_max_attempts:
            log.warning(
                "rate_limit.login_exceeded",
                extra={"client_ip": client_key, "reason": "login"},
            )
            return False
        self.cache.incr(key)
        self.cache.expire(key, self.settings.login_window_seconds)
        return True

    def _consume_api(self, client_key: str) -> bool:
        now = self._clock()
        minute_key = self.minute_key(client_key, now)
        hour_key = self.hour_key(client_key, now)

        if self._count(minute_key) >= self.settings.per_minute:
            log.warning(
                "rate_limit.api_exceeded",
                extra={"client_ip": client_key, "reason": "minute"},
            )
            return False
        if self._count(hour_key) >= self.settings.per_hour:
            log.warning(
                "rate_limit.api_exceeded",
                extra={"client_ip": client_key, "reason": "hour"},
            )
            return False

        self.cache.incr(minute_key)
        self.cache.expire(minute_key, MINUTE)
        self.cache.incr(hour_key)
        self.cache.expire(hour_key, HOUR)
        return True
