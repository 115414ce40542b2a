"""Token codec — deterministic placeholders for PII values.

Token format (shared by every mode and store):

    <PII_{CATEGORY}_{fingerprint}>

where ``fingerprint`` is 8 lowercase hex characters derived from
``"{CATEGORY}:{value}"``:

  - keyed mode:  first 8 hex chars of HMAC-SHA256 under the signing key
  - demo mode:   32-bit rolling string hash — NOT a security control

Because a token is a pure function of (category, value), the same value
always yields the same token, across calls and across processes.
"""

from __future__ import annotations
import hashlib
import hmac
import re

from .errors import ConfigurationError
from .types import PIICategory

TOKEN_PATTERN = re.compile(r"<PII_[A-Z_]+_[a-f0-9]{8}>")
TOKEN_PREFIX = "<PII_"

FINGERPRINT_LENGTH = 8


def _demo_fingerprint(data: str) -> str:
    """Java-style ``h = h*31 + c`` over UTF-16 code units, 32-bit signed."""
    raw = data.encode("utf-16-le")
    h = 0
    for i in range(0, len(raw), 2):
        unit = raw[i] | (raw[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 1 << 32
    return format(abs(h), "x")[:FINGERPRINT_LENGTH].rjust(FINGERPRINT_LENGTH, "0")


class TokenCodec:
    """Derives tokens for (category, value) pairs and finds them in text."""

    __slots__ = ("_key", "_keyed")

    def __init__(self, signing_key: str | bytes | None = None, *, keyed: bool = True) -> None:
        if isinstance(signing_key, str):
            signing_key = signing_key.encode("utf-8")
        self._key = signing_key or None
        self._keyed = keyed

    @classmethod
    def demo(cls) -> "TokenCodec":
        """Unkeyed codec for offline demonstration."""
        return cls(keyed=False)

    @property
    def keyed(self) -> bool:
        return self._keyed

    def require_key(self) -> None:
        if self._keyed and not self._key:
            raise ConfigurationError("signing_key")

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def fingerprint(self, category: PIICategory, value: str) -> str:
        data = f"{category.value}:{value}"
        if not self._keyed:
            return _demo_fingerprint(data)
        self.require_key()
        digest = hmac.new(self._key, data.encode("utf-8"), hashlib.sha256)
        return digest.hexdigest()[:FINGERPRINT_LENGTH]

    def make_token(self, category: PIICategory, value: str) -> str:
        return f"<PII_{category.value}_{self.fingerprint(category, value)}>"

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    @staticmethod
    def parse_tokens(text: str) -> list[str]:
        """Every token-shaped substring, in order (duplicates kept)."""
        return TOKEN_PATTERN.findall(text)

    @staticmethod
    def contains_tokens(text: str) -> bool:
        return TOKEN_PATTERN.search(text) is not None

    @staticmethod
    def token_spans(text: str) -> list[tuple[int, int]]:
        return [(m.start(), m.end()) for m in TOKEN_PATTERN.finditer(text)]
