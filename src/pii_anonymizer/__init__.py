"""PII Anonymizer — reversible PII tokenization for LLM chat pipelines."""

from .anonymizer import Anonymizer, AnonymizerConfig
from .deanonymizer import Deanonymizer
from .errors import PIIError, ValidationError, ConfigurationError, StorageError
from .tokens import TokenCodec
from .vault import MappingStore, Vault
from .vault_sqlite import SqliteVault
from .vault_supabase import SupabaseVault
from .service import PIIService, ServiceResponse
from .middleware import PIIMiddleware
from .streaming import StreamingDeanonymizer
from .config import create_middleware, create_service, load_config, load_from_yaml
from .types import (
    PIICategory, DetectedItem, TokenMapping, AnonymizeResult, RestoreResult,
    format_category, category_stats,
)

__all__ = [
    "Anonymizer", "AnonymizerConfig", "Deanonymizer",
    "PIIError", "ValidationError", "ConfigurationError", "StorageError",
    "TokenCodec",
    "MappingStore", "Vault", "SqliteVault", "SupabaseVault",
    "PIIService", "ServiceResponse",
    "PIIMiddleware",
    "StreamingDeanonymizer",
    "create_middleware", "create_service", "load_config", "load_from_yaml",
    "PIICategory", "DetectedItem", "TokenMapping", "AnonymizeResult", "RestoreResult",
    "format_category", "category_stats",
]
__version__ = "0.1.0"
