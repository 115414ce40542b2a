"""Vault — token → original-value mapping stores.

Every backend implements the same small contract (``MappingStore``):

  - ``put(token, original)``: insert-if-absent.  Re-inserting an existing
    token is a no-op, never an overwrite and never an error.
  - ``get(token)``: the original value, or ``None`` on a miss.
  - ``ensure_ready()``: raise ``ConfigurationError`` if the backend is
    missing required settings.

``Vault`` is the volatile, in-process variant.  Its contents live exactly
as long as the object: they are lost on process restart, and the owner
must call ``clear()`` at the end of its scope (e.g. a demo session).
Nothing here clears it automatically, since a caller may anonymize once
and deanonymize several replies later.
"""

from __future__ import annotations
import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class MappingStore(Protocol):
    def put(self, token: str, original: str) -> None: ...
    def get(self, token: str) -> str | None: ...
    def ensure_ready(self) -> None: ...


class Vault:
    """In-memory token → PII store, safe to share between threads."""

    __slots__ = ("_token_to_pii", "_lock")

    backend = "memory"
    volatile = True

    def __init__(self) -> None:
        self._token_to_pii: dict[str, str] = {}   # <PII_EMAIL_1a2b3c4d> → "john@x.com"
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def put(self, token: str, original: str) -> None:
        with self._lock:
            self._token_to_pii.setdefault(token, original)

    def get(self, token: str) -> str | None:
        with self._lock:
            return self._token_to_pii.get(token)

    def ensure_ready(self) -> None:
        return None

    # ------------------------------------------------------------------
    # Lifecycle / introspection
    # ------------------------------------------------------------------

    def clear(self) -> None:
        with self._lock:
            self._token_to_pii.clear()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._token_to_pii)

    def dump(self) -> dict[str, str]:
        """Return a copy of the token→pii mapping (for debugging)."""
        with self._lock:
            return dict(self._token_to_pii)
