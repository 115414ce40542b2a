"""Chat middleware — wraps the model/webhook call in OpenAI-style message format.

Usage as a function wrapper:

    mw = PIIMiddleware.create(codec=TokenCodec.demo())

    # Before sending to the model
    safe_messages = mw.pre_send(messages)

    # After receiving the reply
    real_reply = mw.post_receive(reply_text)

Because tokens are deterministic, a token that appears in earlier
conversation history resolves the same way on later turns.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from .anonymizer import Anonymizer, AnonymizerConfig
from .deanonymizer import Deanonymizer
from .tokens import TokenCodec
from .vault import MappingStore, Vault

logger = logging.getLogger(__name__)


@dataclass
class PIIMiddleware:
    """Middleware that sits between the chat UI and the model."""

    anonymizer: Anonymizer
    deanonymizer: Deanonymizer

    @classmethod
    def create(
        cls,
        *,
        codec: TokenCodec,
        store: MappingStore | None = None,
        config: AnonymizerConfig | None = None,
    ) -> "PIIMiddleware":
        """Factory — a fresh volatile Vault unless a store is given."""
        store = store if store is not None else Vault()
        return cls(
            anonymizer=Anonymizer(codec, store, config),
            deanonymizer=Deanonymizer(store),
        )

    @property
    def store(self) -> MappingStore:
        return self.anonymizer.store

    def pre_send(self, messages: list[dict], *, content_key: str = "content") -> list[dict]:
        """Anonymize PII in outbound messages.

        Returns new message dicts; the originals are not mutated.
        """
        out: list[dict] = []
        detected = 0
        for msg in messages:
            content = msg.get(content_key)
            if isinstance(content, str) and content.strip():
                result = self.anonymizer.anonymize(content)
                detected += len(result.items)
                out.append({**msg, content_key: result.anonymized_text})
            else:
                out.append(msg)
        logger.debug("Anonymized %d messages, %d PII items", len(messages), detected)
        return out

    def post_receive(self, text: str) -> str:
        """Restore tokens in the model's reply."""
        return self.deanonymizer.deanonymize(text)


class NoopMiddleware:
    """Pass-through middleware when anonymization is disabled."""

    def pre_send(self, messages: list[dict], *, content_key: str = "content") -> list[dict]:
        return messages

    def post_receive(self, text: str) -> str:
        return text
