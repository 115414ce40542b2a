"""Optional NER layer for the NAME category.

The honorific regex only catches "Sr. Pérez"-style names.  When enabled,
Presidio's PERSON recognizer (spaCy under the hood) adds bare names such
as "María Fernanda Ruiz".  Install with the ``presidio`` extra and a
spaCy model (``es_core_news_sm`` for Spanish).
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .types import PIICategory, PatternMatch

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

# Lazy singleton, spaCy loads on first use
_engine: AnalyzerEngine | None = None
_engine_key: tuple[str, str] = ("", "")


def _get_engine(language: str = "es", model: str = "es_core_news_sm") -> AnalyzerEngine:
    """Lazy-init the Presidio analyzer engine."""
    global _engine, _engine_key
    if _engine is None or _engine_key != (language, model):
        from presidio_analyzer import AnalyzerEngine
        from presidio_analyzer.nlp_engine import NlpEngineProvider

        provider = NlpEngineProvider(nlp_configuration={
            "nlp_engine_name": "spacy",
            "models": [{"lang_code": language, "model_name": model}],
        })
        nlp_engine = provider.create_engine()
        _engine = AnalyzerEngine(nlp_engine=nlp_engine, supported_languages=[language])
        _engine_key = (language, model)
    return _engine


def scan_person_names(
    text: str,
    *,
    language: str = "es",
    model: str = "es_core_news_sm",
    score_threshold: float = 0.6,
    exclude_spans: list[tuple[int, int]] | None = None,
) -> list[PatternMatch]:
    """PERSON entities as NAME matches, skipping anything in ``exclude_spans``."""
    engine = _get_engine(language, model)
    results = engine.analyze(
        text=text,
        language=language,
        entities=["PERSON"],
        score_threshold=score_threshold,
    )

    exclude = exclude_spans or []
    matches: list[PatternMatch] = []
    for r in results:
        if any(r.start < e and r.end > s for s, e in exclude):
            continue
        matches.append(PatternMatch(
            category=PIICategory.NAME,
            start=r.start,
            end=r.end,
            text=text[r.start:r.end],
            source="presidio",
        ))

    return _non_overlapping(matches)


def _non_overlapping(matches: list[PatternMatch]) -> list[PatternMatch]:
    """Keep the longest of any overlapping spans, returned left to right."""
    ranked = sorted(matches, key=lambda m: (-(m.end - m.start), m.start))
    taken: list[PatternMatch] = []
    for m in ranked:
        if not any(m.start < t.end and m.end > t.start for t in taken):
            taken.append(m)
    return sorted(taken, key=lambda m: m.start)
