"""Pattern registry — one regex recognizer per PII category.

Recognizers are tuned for Colombian Spanish text (``+57`` phones,
cédulas, ``Calle 45 # 12-30`` addresses).  Each category is scanned
independently; the order in which categories are applied is the only
disambiguation between them (see ``DEFAULT_CATEGORY_ORDER``).
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Iterable

from .types import PIICategory, PatternMatch

_UPPER = "A-ZÁÉÍÓÚÑÜ"
_LOWER = "a-záéíóúñü"
_WORD = rf"[{_UPPER}][{_LOWER}]+"
# A street keyword ends a name and starts an address
_NOT_STREET = r"(?!(?:Calle|Carrera|Avenida|Diagonal|Transversal)\b|(?:Av|Cra|Cr|Kr|Cl)\.)"

# First category listed wins when a value satisfies more than one pattern
DEFAULT_CATEGORY_ORDER: tuple[PIICategory, ...] = (
    PIICategory.EMAIL,
    PIICategory.PHONE,
    PIICategory.NATIONAL_ID,
    PIICategory.CREDIT_CARD,
    PIICategory.NAME,
    PIICategory.ADDRESS,
)


@dataclass(frozen=True, slots=True)
class Matcher:
    """Recognizer for a single category."""
    category: PIICategory
    pattern: re.Pattern

    def scan(self, text: str) -> list[PatternMatch]:
        return [
            PatternMatch(
                category=self.category,
                start=m.start(),
                end=m.end(),
                text=m.group(),
            )
            for m in self.pattern.finditer(text)
        ]


_MATCHERS: dict[PIICategory, Matcher] = {
    # local@domain.tld
    PIICategory.EMAIL: Matcher(PIICategory.EMAIL, re.compile(
        r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"
    )),

    # 10 digits (3-3-4), optional +57 country code; never inside a longer digit run
    PIICategory.PHONE: Matcher(PIICategory.PHONE, re.compile(
        r"(?<![\w+])"
        r"(?:\+?57[ .\-]?)?"
        r"\d{3}[ .\-]?\d{3}[ .\-]?\d{4}"
        r"(?!\d)"
    )),

    # CC / C.C. / Cédula label followed by 6-12 digits; the label is part of the value
    PIICategory.NATIONAL_ID: Matcher(PIICategory.NATIONAL_ID, re.compile(
        r"(?<!\w)(?:C\.C\.?|CC|C[ée]dula)[ \t]*:?[ \t]*\d{6,12}(?!\d)",
        re.IGNORECASE,
    )),

    # Four groups of four digits
    PIICategory.CREDIT_CARD: Matcher(PIICategory.CREDIT_CARD, re.compile(
        r"(?<!\d)(?:\d{4}[\- ]?){3}\d{4}(?!\d)"
    )),

    # Honorific + capitalized words ("Dra. María de los Ángeles Pérez")
    PIICategory.NAME: Matcher(PIICategory.NAME, re.compile(
        r"\b(?:Sra\.|Sr\.|Dra\.|Dr\.|Abogada|Abogado|Lic\.|Ing\.)"
        rf"[ \t]+{_WORD}"
        rf"(?:[ \t]+(?:(?:de|del|la|las|los)[ \t]+)*{_NOT_STREET}{_WORD})*"
    )),

    # Street keyword + number, optional "# 12-30" plate and unit descriptors
    PIICategory.ADDRESS: Matcher(PIICategory.ADDRESS, re.compile(
        r"(?<!\w)(?:Calle|Carrera|Avenida|Diagonal|Transversal|Av\.|Cra\.|Cr\.|Kr\.|Cl\.)"
        r"[ \t]+\d+[A-Za-z]?"
        r"(?:[ \t]*(?:#|No\.?|N°)[ \t]*\d+[A-Za-z]?(?:[ \t]*-[ \t]*\d+)?)?"
        r"(?:[ \t]*,?[ \t]*(?:apto\.?|apartamento|oficina|of\.|interior|int\.?|torre|piso)"
        r"[ \t]*\d+[A-Za-z]?)*",
        re.IGNORECASE,
    )),
}


def matchers_for(order: Iterable[PIICategory]) -> list[Matcher]:
    """Matchers in the given scan order."""
    return [_MATCHERS[category] for category in order]


def scan(category: PIICategory, text: str) -> list[PatternMatch]:
    """All non-overlapping matches of one category, left to right."""
    return _MATCHERS[category].scan(text)
