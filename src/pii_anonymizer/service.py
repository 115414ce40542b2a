"""Service boundary — the two operations the rest of the application calls.

Every outcome, including failures, comes back as a ``ServiceResponse``
carrying an HTTP-style status and a JSON-ready body, so the UI can show
a specific message.  This is the only place core errors are caught.

    anonymize   {text} → {success, anonymizedText, items, error?}
    deanonymize {text} → {success, text, tokensProcessed, error?}
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable

from .anonymizer import Anonymizer
from .deanonymizer import Deanonymizer
from .errors import ConfigurationError, PIIError, StorageError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ServiceResponse:
    status: int
    body: dict[str, Any]

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))


def _error_message(exc: PIIError) -> str:
    if isinstance(exc, ConfigurationError):
        return f"Server configuration error: {exc}"
    if isinstance(exc, StorageError):
        return "Mapping store unavailable"
    return str(exc)


class PIIService:
    """Structured-result wrapper around an Anonymizer/Deanonymizer pair."""

    def __init__(
        self,
        anonymizer: Anonymizer,
        deanonymizer: Deanonymizer,
        *,
        mode: str = "production",
    ) -> None:
        self.anonymizer = anonymizer
        self.deanonymizer = deanonymizer
        self.mode = mode

    @property
    def store(self):
        return self.anonymizer.store

    def anonymize(self, text: Any) -> ServiceResponse:
        def run() -> dict[str, Any]:
            result = self.anonymizer.anonymize(text)
            return {"success": True, **result.to_dict()}

        return self._call(
            "anonymization", run,
            {"success": False, "anonymizedText": "", "items": []},
        )

    def deanonymize(self, text: Any) -> ServiceResponse:
        def run() -> dict[str, Any]:
            if not isinstance(text, str) or not text:
                raise ValidationError("text must not be empty")
            result = self.deanonymizer.restore(text)
            return {
                "success": True,
                "text": result.text,
                "tokensProcessed": result.tokens_processed,
            }

        return self._call(
            "deanonymization", run,
            {"success": False, "text": "", "tokensProcessed": 0},
        )

    def clear(self) -> ServiceResponse:
        """Empty a volatile store at the end of a demo session."""
        if not getattr(self.store, "volatile", False):
            return ServiceResponse(409, {
                "success": False,
                "error": f"{self.store.backend} mapping store cannot be cleared",
            })
        self.store.clear()
        logger.info("Cleared volatile mapping store")
        return ServiceResponse(200, {"success": True})

    def health(self) -> ServiceResponse:
        return ServiceResponse(200, {
            "status": "ok",
            "mode": self.mode,
            "backend": getattr(self.store, "backend", type(self.store).__name__),
        })

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _call(
        self,
        operation: str,
        run: Callable[[], dict[str, Any]],
        failure_body: dict[str, Any],
    ) -> ServiceResponse:
        try:
            return ServiceResponse(200, run())
        except ValidationError as e:
            return ServiceResponse(e.status_code, {**failure_body, "error": _error_message(e)})
        except PIIError as e:
            logger.error("PII %s failed: %s", operation, e)
            return ServiceResponse(e.status_code, {**failure_body, "error": _error_message(e)})
        except Exception:
            logger.exception("PII %s error", operation)
            return ServiceResponse(500, {
                **failure_body,
                "error": f"Internal server error during {operation}",
            })
