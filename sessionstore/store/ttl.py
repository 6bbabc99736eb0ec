"""
Time-to-live resolution for session records.

The configured `ttl` option is classified once into a TtlPolicy; resolving
a TTL for a session dispatches on the policy kind.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

# One day in seconds
ONE_DAY = 86400

TtlResolver = Callable[[Any, Any, Optional[str]], int]


class TtlKind(str, Enum):
    """How a TTL is determined"""
    FIXED = "fixed"
    RESOLVER = "resolver"
    COOKIE = "cookie"


@dataclass(frozen=True)
class TtlPolicy:
    kind: TtlKind
    seconds: Optional[int] = None
    resolver: Optional[TtlResolver] = None

    @classmethod
    def fixed(cls, seconds: int) -> "TtlPolicy":
        return cls(kind=TtlKind.FIXED, seconds=seconds)

    @classmethod
    def from_resolver(cls, resolver: TtlResolver) -> "TtlPolicy":
        return cls(kind=TtlKind.RESOLVER, resolver=resolver)

    @classmethod
    def cookie(cls) -> "TtlPolicy":
        return cls(kind=TtlKind.COOKIE)

    @classmethod
    def from_option(cls, value: Any) -> "TtlPolicy":
        """
        Classify a raw `ttl` option.

        Args:
            value: Seconds, a callable (store, sess, sid) -> seconds, or None

        Returns:
            The matching policy

        Raises:
            TypeError: If the value is none of the supported shapes
        """
        if value is None:
            return cls.cookie()
        if callable(value):
            return cls.from_resolver(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return cls.fixed(value)
        raise TypeError(f"Unsupported ttl option of type {type(value).__name__}")

    def resolve(self, store: Any, sess: Any, sid: Optional[str] = None) -> int:
        """Seconds the session should live from now"""
        if self.kind is TtlKind.FIXED:
            return self.seconds
        if self.kind is TtlKind.RESOLVER:
            return self.resolver(store, sess, sid)
        return cookie_ttl(sess)


def get_cookie(sess: Any) -> Optional[Mapping]:
    """The session's cookie descriptor, if it has one"""
    if not isinstance(sess, Mapping):
        return None
    cookie = sess.get("cookie")
    return cookie if isinstance(cookie, Mapping) else None


def cookie_ttl(sess: Any) -> int:
    """TTL from the cookie max-age in milliseconds, else one day"""
    cookie = get_cookie(sess)
    if cookie is None:
        return ONE_DAY

    max_age = cookie.get("maxAge", cookie.get("max_age"))
    if isinstance(max_age, (int, float)) and not isinstance(max_age, bool):
        return math.floor(max_age / 1000)
    return ONE_DAY


def has_fixed_expiry(sess: Any) -> bool:
    """Whether the cookie carries its own absolute expiration"""
    cookie = get_cookie(sess)
    return cookie is not None and cookie.get("expires") is not None
