"""YAML/dict config loader for pii-anonymizer.

Supports loading from a YAML file or a plain dict (for embedding in a
larger application config).  Secrets fall back to environment variables
so they never have to live in the file.

Example YAML:

    pii_anonymizer:
      enabled: true
      mode: production          # "production" (HMAC tokens) or "demo"
      signing_key: null         # else $PII_HMAC_SECRET, then $HMAC_SECRET
      category_order: [EMAIL, PHONE, NATIONAL_ID, CREDIT_CARD, NAME, ADDRESS]
      skip_categories: []
      allow_list:
        - soporte@ejemplo.com
      on_storage_error: skip    # "skip" or "abort"
      use_presidio: false
      language: es
      log_level: INFO
      store:
        backend: sqlite         # "memory", "sqlite" or "supabase"
        path: ~/.pii-anonymizer/mappings.db
        url: null               # else $SUPABASE_URL
        service_key: null       # else $SUPABASE_SERVICE_ROLE_KEY
        timeout: 10.0

In demo mode the store defaults to "memory" and tokens are unkeyed.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any

from .anonymizer import STORAGE_ERROR_POLICIES, Anonymizer, AnonymizerConfig
from .deanonymizer import Deanonymizer
from .errors import ConfigurationError
from .middleware import NoopMiddleware, PIIMiddleware
from .patterns import DEFAULT_CATEGORY_ORDER
from .service import PIIService
from .tokens import TokenCodec
from .types import PIICategory
from .vault import MappingStore, Vault
from .vault_sqlite import SqliteVault
from .vault_supabase import SupabaseVault

MODES = ("production", "demo")
BACKENDS = ("memory", "sqlite", "supabase")

DEFAULT_DB = str(Path.home() / ".pii-anonymizer" / "mappings.db")


def _categories(values: Any, setting: str) -> list[PIICategory]:
    try:
        return [
            v if isinstance(v, PIICategory) else PIICategory(str(v).upper())
            for v in values
        ]
    except ValueError as e:
        raise ConfigurationError(setting, f"{setting}: unknown category ({e})") from e
    except TypeError as e:
        raise ConfigurationError(setting, f"{setting} must be a list of categories") from e


def _number(value: Any, default: float, setting: str) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(setting, f"{setting} must be a number") from e


def _env(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def load_config(data: dict[str, Any] | None = None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "pii_anonymizer" key or flat
    if "pii_anonymizer" in data:
        data = data["pii_anonymizer"] or {}

    mode = data.get("mode") or "production"
    if mode not in MODES:
        raise ConfigurationError("mode", f"mode must be one of {', '.join(MODES)}")

    store = data.get("store") or {}
    backend = store.get("backend") or ("memory" if mode == "demo" else "sqlite")
    if backend not in BACKENDS:
        raise ConfigurationError("store.backend", f"store.backend must be one of {', '.join(BACKENDS)}")

    on_storage_error = data.get("on_storage_error") or "skip"
    if on_storage_error not in STORAGE_ERROR_POLICIES:
        raise ConfigurationError(
            "on_storage_error",
            f"on_storage_error must be one of {', '.join(STORAGE_ERROR_POLICIES)}",
        )

    return {
        "enabled": data.get("enabled") is not False,
        "mode": mode,
        "signing_key": data.get("signing_key") or _env("PII_HMAC_SECRET", "HMAC_SECRET"),
        "category_order": _categories(
            data.get("category_order") or DEFAULT_CATEGORY_ORDER, "category_order"
        ),
        "skip_categories": set(_categories(data.get("skip_categories") or [], "skip_categories")),
        "allow_list": {str(v) for v in data.get("allow_list") or []},
        "on_storage_error": on_storage_error,
        "use_presidio": bool(data.get("use_presidio")),
        "language": data.get("language") or "es",
        "presidio_model": data.get("presidio_model") or "es_core_news_sm",
        "score_threshold": _number(data.get("score_threshold"), 0.6, "score_threshold"),
        "log_level": data.get("log_level") or "INFO",
        "store_backend": backend,
        "store_path": store.get("path") or _env("PII_ANONYMIZER_DB") or DEFAULT_DB,
        "store_url": store.get("url") or _env("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
        "store_service_key": store.get("service_key") or _env("SUPABASE_SERVICE_ROLE_KEY"),
        "store_timeout": _number(store.get("timeout"), 10.0, "store.timeout"),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path, encoding="utf-8") as f:
        return load_config(yaml.safe_load(f))


def _normalized(config: dict[str, Any]) -> dict[str, Any]:
    return config if "store_backend" in config else load_config(config)


# ----------------------------------------------------------------------
# Factories
# ----------------------------------------------------------------------

def create_store(config: dict[str, Any]) -> MappingStore:
    cfg = _normalized(config)
    backend = cfg["store_backend"]
    if backend == "sqlite":
        return SqliteVault(cfg["store_path"], timeout=cfg["store_timeout"])
    if backend == "supabase":
        return SupabaseVault(
            cfg["store_url"], cfg["store_service_key"], timeout=cfg["store_timeout"]
        )
    return Vault()


def create_codec(config: dict[str, Any]) -> TokenCodec:
    cfg = _normalized(config)
    if cfg["mode"] == "demo":
        return TokenCodec.demo()
    # A missing key is reported when a token is needed, not at startup
    return TokenCodec(cfg["signing_key"])


def _anonymizer_config(cfg: dict[str, Any]) -> AnonymizerConfig:
    return AnonymizerConfig(
        category_order=tuple(cfg["category_order"]),
        skip_categories=set(cfg["skip_categories"]),
        allow_list=set(cfg["allow_list"]),
        on_storage_error=cfg["on_storage_error"],
        use_presidio=cfg["use_presidio"],
        language=cfg["language"],
        presidio_model=cfg["presidio_model"],
        score_threshold=cfg["score_threshold"],
    )


def create_anonymizer(config: dict[str, Any], store: MappingStore | None = None) -> Anonymizer:
    cfg = _normalized(config)
    store = store if store is not None else create_store(cfg)
    return Anonymizer(create_codec(cfg), store, _anonymizer_config(cfg))


def create_deanonymizer(config: dict[str, Any], store: MappingStore | None = None) -> Deanonymizer:
    cfg = _normalized(config)
    return Deanonymizer(store if store is not None else create_store(cfg))


def create_service(config: dict[str, Any], store: MappingStore | None = None) -> PIIService:
    """Anonymizer and Deanonymizer sharing one store."""
    cfg = _normalized(config)
    store = store if store is not None else create_store(cfg)
    return PIIService(
        create_anonymizer(cfg, store),
        create_deanonymizer(cfg, store),
        mode=cfg["mode"],
    )


def create_middleware(
    config: dict[str, Any],
    store: MappingStore | None = None,
) -> PIIMiddleware | NoopMiddleware:
    """Create a fully configured middleware from a config dict."""
    cfg = _normalized(config)
    if not cfg["enabled"]:
        return NoopMiddleware()
    store = store if store is not None else create_store(cfg)
    return PIIMiddleware(
        anonymizer=create_anonymizer(cfg, store),
        deanonymizer=create_deanonymizer(cfg, store),
    )
