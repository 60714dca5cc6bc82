"""
Contracts package - validation, merge, repair and sanitization of
declarative app contracts.
"""

from .types import (
    Contract,
    ValidationIssue,
    ValidationResult,
    ValidationStats,
    authenticated_pages,
    get_pages,
    is_personalizable,
    page_scope,
)
from .features import SupportedFeatures, DEFAULT_FEATURES, load_doc_features
from .validator import ContractValidator, validate_contract
from .merger import MergeInternalError, merge_contracts, try_merge_contracts
from .repairer import ContractRepairer, DEFAULT_THRESHOLDS, default_thresholds
from .explainer import explain_changes
from .sanitizer import FlutterSanitizer
from .store import ContractStore, PersistedContract
from .resolver import UserContractResolver, user_contract_cache_key

__all__ = [
    # Types
    "Contract",
    "ValidationIssue",
    "ValidationResult",
    "ValidationStats",
    "authenticated_pages",
    "get_pages",
    "is_personalizable",
    "page_scope",
    # Validation
    "SupportedFeatures",
    "DEFAULT_FEATURES",
    "load_doc_features",
    "ContractValidator",
    "validate_contract",
    # Merge
    "MergeInternalError",
    "merge_contracts",
    "try_merge_contracts",
    # Repair
    "ContractRepairer",
    "DEFAULT_THRESHOLDS",
    "default_thresholds",
    # Explain / sanitize
    "explain_changes",
    "FlutterSanitizer",
    # Storage
    "ContractStore",
    "PersistedContract",
    "UserContractResolver",
    "user_contract_cache_key",
]
