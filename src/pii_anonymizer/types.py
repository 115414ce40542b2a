"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class PIICategory(str, Enum):
    """Closed set of PII categories.  The value is the token's category tag."""
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    NATIONAL_ID = "NATIONAL_ID"
    CREDIT_CARD = "CREDIT_CARD"
    NAME = "NAME"
    ADDRESS = "ADDRESS"


# Shown to the user when confirming what will be anonymized
CATEGORY_LABELS: dict[PIICategory, str] = {
    PIICategory.EMAIL: "Correo Electrónico",
    PIICategory.PHONE: "Teléfono",
    PIICategory.NATIONAL_ID: "Cédula",
    PIICategory.CREDIT_CARD: "Tarjeta de Crédito",
    PIICategory.NAME: "Nombre",
    PIICategory.ADDRESS: "Dirección",
}


@dataclass(frozen=True, slots=True)
class PatternMatch:
    """A raw hit of one category's recognizer, in input coordinates."""
    category: PIICategory
    start: int
    end: int
    text: str
    source: str = "regex"  # "regex" | "presidio"


@dataclass(frozen=True, slots=True)
class DetectedItem:
    """One PII occurrence; offsets point into the anonymized text."""
    category: PIICategory
    original_value: str
    token: str
    start_offset: int
    end_offset: int

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "originalValue": self.original_value,
            "token": self.token,
            "startOffset": self.start_offset,
            "endOffset": self.end_offset,
        }


@dataclass(frozen=True, slots=True)
class TokenMapping:
    """A persisted token → original value association."""
    token: str
    original_value: str


@dataclass(slots=True)
class AnonymizeResult:
    """Result of anonymizing one piece of text."""
    anonymized_text: str
    items: list[DetectedItem] = field(default_factory=list)

    @property
    def token_map(self) -> dict[str, str]:
        return {item.token: item.original_value for item in self.items}

    @property
    def mappings(self) -> list[TokenMapping]:
        """Distinct token → value pairs, in text order."""
        return [TokenMapping(token, original) for token, original in self.token_map.items()]

    def to_dict(self) -> dict:
        return {
            "anonymizedText": self.anonymized_text,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(slots=True)
class RestoreResult:
    """Result of deanonymizing one piece of text."""
    text: str
    tokens: list[str] = field(default_factory=list)   # distinct, first-seen order
    missing: list[str] = field(default_factory=list)  # tokens with no mapping

    @property
    def tokens_processed(self) -> int:
        return len(self.tokens)


def format_category(category: PIICategory | str) -> str:
    """Human-readable (Spanish) label for a category."""
    try:
        return CATEGORY_LABELS[PIICategory(category)]
    except ValueError:
        return str(category)


def category_stats(items: Iterable[DetectedItem]) -> dict[str, int]:
    """Count detected items per category; every category is present."""
    stats = {category.value: 0 for category in PIICategory}
    for item in items:
        stats[item.category.value] += 1
    return stats
