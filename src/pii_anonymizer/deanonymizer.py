"""Deanonymizer — the read side.  Put original values back in place of tokens."""

from __future__ import annotations
import logging

from .errors import ValidationError
from .tokens import TOKEN_PATTERN, TokenCodec
from .types import RestoreResult
from .vault import MappingStore

logger = logging.getLogger(__name__)


class Deanonymizer:
    """Resolves ``<PII_...>`` tokens against a mapping store.

    A token with no mapping (never produced by this store, or cleared
    since) is left verbatim and logged as a warning; it never aborts the
    rest of the text.  Only a failing store raises (``StorageError``).
    """

    def __init__(self, store: MappingStore) -> None:
        self.store = store

    def restore(self, text: str) -> RestoreResult:
        if not isinstance(text, str):
            raise ValidationError("text must be a string")

        tokens = list(dict.fromkeys(TokenCodec.parse_tokens(text)))
        if not tokens:
            # No store access at all on token-free text
            return RestoreResult(text=text)

        self.store.ensure_ready()
        logger.info("Deanonymizing %d PII tokens", len(tokens))

        resolved: dict[str, str] = {}
        missing: list[str] = []
        for token in tokens:
            original = self.store.get(token)
            if original is None:
                logger.warning("No mapping found for token: %s", token)
                missing.append(token)
            else:
                resolved[token] = original

        restored = TOKEN_PATTERN.sub(
            lambda m: resolved.get(m.group(), m.group()), text
        )
        return RestoreResult(text=restored, tokens=tokens, missing=missing)

    def deanonymize(self, text: str) -> str:
        """Restored text only."""
        return self.restore(text).text
