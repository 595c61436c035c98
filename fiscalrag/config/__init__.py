"""
Configuration - Application settings, error taxonomy, and static rule tables.
"""

from .errors import (
    ComparisonPartialFailure,
    ConfigurationError,
    ErrorCode,
    FiscalRAGError,
    LLMError,
    ProviderUnavailableError,
    SearchError,
)
from .rulesets import (
    ArticleMetadata,
    ArticleType,
    CodeVersion,
    DomainRuleset,
    FiscalDomain,
    IntentVocabulary,
    RoutingRule,
    RoutingTable,
    RuleCatalog,
    load_rule_catalog,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "FiscalRAGError",
    "ConfigurationError",
    "SearchError",
    "ProviderUnavailableError",
    "ComparisonPartialFailure",
    "LLMError",
    # Rule tables
    "ArticleMetadata",
    "ArticleType",
    "CodeVersion",
    "DomainRuleset",
    "FiscalDomain",
    "IntentVocabulary",
    "RoutingRule",
    "RoutingTable",
    "RuleCatalog",
    "load_rule_catalog",
]
