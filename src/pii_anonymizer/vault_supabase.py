"""Durable vault on a hosted Supabase (PostgREST) ``pii_mapping`` table.

Expected table:

    create table pii_mapping (
        token text primary key,
        original text not null,
        created_at timestamptz not null default now()
    );

Writes use ``Prefer: resolution=ignore-duplicates`` with ``on_conflict=token``
so the database itself performs insert-if-absent; concurrent inserts of
the same token never fail and never overwrite.
"""

from __future__ import annotations
import logging

import httpx

from .errors import ConfigurationError, StorageError

logger = logging.getLogger(__name__)

TABLE = "pii_mapping"


class SupabaseVault:
    """Token → PII store on the Supabase REST API (service-role access)."""

    backend = "supabase"
    volatile = False

    def __init__(
        self,
        url: str | None,
        service_key: str | None,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url.rstrip("/") if url else None
        self._service_key = service_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    def ensure_ready(self) -> None:
        if not self._url:
            raise ConfigurationError("supabase_url")
        if not self._service_key:
            raise ConfigurationError("supabase_service_key")

    def _get_client(self) -> httpx.Client:
        self.ensure_ready()
        if self._client is None:
            self._client = httpx.Client(
                base_url=f"{self._url}/rest/v1",
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {self._service_key}",
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def put(self, token: str, original: str) -> None:
        client = self._get_client()
        try:
            response = client.post(
                f"/{TABLE}",
                params={"on_conflict": "token"},
                json={"token": token, "original": original},
                headers={"Prefer": "resolution=ignore-duplicates,return=minimal"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageError(
                f"mapping store rejected insert for {token}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise StorageError(f"mapping store unreachable: {e}") from e

    def get(self, token: str) -> str | None:
        client = self._get_client()
        try:
            response = client.get(
                f"/{TABLE}",
                params={"select": "original", "token": f"eq.{token}", "limit": "1"},
            )
            response.raise_for_status()
            rows = response.json()
        except httpx.HTTPStatusError as e:
            raise StorageError(
                f"mapping store rejected lookup for {token}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise StorageError(f"mapping store unreachable: {e}") from e
        except ValueError as e:
            raise StorageError(f"mapping store returned invalid JSON: {e}") from e
        return rows[0]["original"] if rows else None

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
