"""Anonymizer — the write side.  Detect PII, swap in tokens, persist mappings.

Usage:
    from pii_anonymizer import Anonymizer, TokenCodec, Vault

    vault = Vault()                                  # caller owns its lifetime
    anonymizer = Anonymizer(TokenCodec("secret"), vault)

    result = anonymizer.anonymize("Mi email es juan@ejemplo.com")
    print(result.anonymized_text)   # "Mi email es <PII_EMAIL_xxxxxxxx>"

Categories are applied one after another against a single working buffer
that is rewritten between passes.  Once a span has become a token, no
later category can match inside it, so a substring is never tokenized
twice and the first category in ``category_order`` wins.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace

from .errors import ConfigurationError, StorageError, ValidationError
from .patterns import DEFAULT_CATEGORY_ORDER, Matcher, matchers_for
from .tokens import TokenCodec
from .types import AnonymizeResult, DetectedItem, PIICategory, PatternMatch
from .vault import MappingStore

logger = logging.getLogger(__name__)

STORAGE_ERROR_POLICIES = ("skip", "abort")


@dataclass
class AnonymizerConfig:
    """Configuration for the Anonymizer."""
    category_order: tuple[PIICategory, ...] = DEFAULT_CATEGORY_ORDER
    skip_categories: set[PIICategory] = field(default_factory=set)
    # Values that should NEVER be anonymized
    allow_list: set[str] = field(default_factory=set)
    # "skip": log and leave the value in place; "abort": raise StorageError
    on_storage_error: str = "skip"
    use_presidio: bool = False        # add Presidio PERSON hits to the NAME pass
    language: str = "es"
    presidio_model: str = "es_core_news_sm"
    score_threshold: float = 0.6

    def __post_init__(self) -> None:
        if self.on_storage_error not in STORAGE_ERROR_POLICIES:
            raise ConfigurationError(
                "on_storage_error",
                f"on_storage_error must be one of {', '.join(STORAGE_ERROR_POLICIES)}",
            )
        self.category_order = tuple(PIICategory(c) for c in self.category_order)
        self.skip_categories = {PIICategory(c) for c in self.skip_categories}

    @property
    def active_categories(self) -> tuple[PIICategory, ...]:
        return tuple(c for c in self.category_order if c not in self.skip_categories)


class Anonymizer:
    """Sequential, category-ordered PII tokenizer."""

    def __init__(
        self,
        codec: TokenCodec,
        store: MappingStore,
        config: AnonymizerConfig | None = None,
    ) -> None:
        self.codec = codec
        self.store = store
        self.config = config or AnonymizerConfig()

    def anonymize(self, text: str) -> AnonymizeResult:
        """Replace every detected PII value in ``text`` with its token.

        Offsets of the returned items refer to the anonymized text.

        Raises:
            ValidationError: ``text`` is not a string or is blank.
            ConfigurationError: signing key or store settings are missing.
            StorageError: a write failed and ``on_storage_error`` is "abort".
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("text must not be empty")
        self.codec.require_key()
        self.store.ensure_ready()

        working = text
        items: list[DetectedItem] = []

        for matcher in matchers_for(self.config.active_categories):
            category = matcher.category
            delta = 0  # length change from substitutions made in this pass
            for match in self._scan(matcher, working):
                value = match.text
                if value in self.config.allow_list:
                    logger.debug("Skipping allow-listed %s value", category.value)
                    continue

                token = self.codec.make_token(category, value)
                try:
                    self.store.put(token, value)
                except StorageError:
                    if self.config.on_storage_error == "abort":
                        raise
                    logger.error(
                        "Failed to store mapping for %s; value left in place", token,
                        exc_info=True,
                    )
                    continue

                start = match.start + delta
                end = start + len(value)
                shift = len(token) - len(value)

                # Items from earlier passes that sit to the right move too
                items = [
                    replace(i, start_offset=i.start_offset + shift, end_offset=i.end_offset + shift)
                    if i.start_offset >= end else i
                    for i in items
                ]
                items.append(DetectedItem(
                    category=category,
                    original_value=value,
                    token=token,
                    start_offset=start,
                    end_offset=start + len(token),
                ))
                working = working[:start] + token + working[end:]
                delta += shift

        items.sort(key=lambda i: i.start_offset)
        logger.info("PII anonymization completed: %d items detected", len(items))
        return AnonymizeResult(anonymized_text=working, items=items)

    def _scan(self, matcher: Matcher, working: str) -> list[PatternMatch]:
        """Fresh matches of one category, ignoring anything inside a token."""
        category = matcher.category
        token_spans = self.codec.token_spans(working)
        matches = [
            m for m in matcher.scan(working)
            if not any(m.start < e and m.end > s for s, e in token_spans)
        ]

        if category is PIICategory.NAME and self.config.use_presidio:
            from .presidio_layer import scan_person_names
            taken = token_spans + [(m.start, m.end) for m in matches]
            matches.extend(scan_person_names(
                working,
                language=self.config.language,
                model=self.config.presidio_model,
                score_threshold=self.config.score_threshold,
                exclude_spans=taken,
            ))
            matches.sort(key=lambda m: m.start)

        return matches
