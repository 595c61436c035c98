"""
Rule Tables - Static keyword, synonym, routing and article metadata tables.

Tables are JSON files shipped under ``fiscalrag/config/data`` and described by
``index.json``:

    {
      "intent": "intent.json",
      "versions": {
        "2025": {"rulesets": ["irpp.json", ...], "routing": "2025/routing.json"},
        ...
      }
    }

Everything is validated once at load time. A malformed table raises
ConfigurationError so that a bad deploy fails at startup, never mid-query.

Usage:
    from fiscalrag.config.rulesets import load_rule_catalog

    catalog = load_rule_catalog()
    rulesets = catalog.rulesets_for(CodeVersion.V2026)
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "ArticleMetadata",
    "ArticleType",
    "CodeVersion",
    "DomainRuleset",
    "FiscalDomain",
    "IntentVocabulary",
    "RoutingRule",
    "RoutingTable",
    "RuleCatalog",
    "DEFAULT_RULES_DIR",
    "load_rule_catalog",
]

DEFAULT_RULES_DIR = Path(__file__).parent / "data"

_ARTICLE_ID = re.compile(r"^Art\. [0-9]+[A-Za-z0-9 \-]*$")


class CodeVersion(str, Enum):
    """Edition of the tax code. Each edition is a separately indexed partition."""

    V2025 = "2025"
    V2026 = "2026"

    @property
    def other(self) -> CodeVersion:
        return CodeVersion.V2026 if self is CodeVersion.V2025 else CodeVersion.V2025


class ArticleType(str, Enum):
    """Semantic role of a provision, used as the second ranking key."""

    DEFINITION = "definition"
    EXEMPTION = "exemption"
    CALCULATION = "calculation"
    PROCEDURE = "procedure"
    APPLICATION = "application"
    SANCTION = "sanction"


class FiscalDomain(str, Enum):
    """Coarse fiscal-domain tag (analytics only, never used for routing)."""

    IRPP = "IRPP"
    ITS = "ITS"
    IS = "IS"
    IBA = "IBA"
    TVA = "TVA"
    ENREGISTREMENT = "enregistrement"
    PATENTE = "patente"
    TAXES_LOCALES = "taxes_locales"
    CONTENTIEUX = "contentieux"
    IRF = "IRF"


def _check_article_id(value: str) -> str:
    value = value.strip()
    if not _ARTICLE_ID.match(value):
        raise ValueError(f"article id must look like 'Art. 92A', got {value!r}")
    return value


class ArticleMetadata(BaseModel):
    """Editorial metadata for one article of one edition."""

    numero: str
    version: CodeVersion | None = None
    domain: FiscalDomain | None = None
    title: str = ""
    section: str = ""
    tome: str | None = None
    priority: int = Field(default=2, ge=0, le=9)
    type: ArticleType | None = None
    themes: list[str] = Field(default_factory=list)
    defines: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    values: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("numero")
    @classmethod
    def validate_numero(cls, value: str) -> str:
        return _check_article_id(value)


class DomainRuleset(BaseModel):
    """Keyword map + synonym map + metadata map for one fiscal domain."""

    domain: FiscalDomain
    version: CodeVersion
    keywords: dict[str, list[str]] = Field(default_factory=dict)
    synonyms: dict[str, list[str]] = Field(default_factory=dict)
    articles: dict[str, ArticleMetadata] = Field(default_factory=dict)

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for phrase, article_ids in value.items():
            if not phrase.strip():
                raise ValueError("keyword phrase must not be empty")
            if not article_ids:
                raise ValueError(f"keyword {phrase!r} maps to no article")
            for article_id in article_ids:
                _check_article_id(article_id)
        return value

    @field_validator("synonyms")
    @classmethod
    def validate_synonyms(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for canonical, alternatives in value.items():
            if not canonical.strip() or any(not alt.strip() for alt in alternatives):
                raise ValueError(f"synonym entry {canonical!r} has an empty phrase")
        return value

    @model_validator(mode="before")
    @classmethod
    def fill_article_numbers(cls, data: Any) -> Any:
        # Entries are keyed by article id and inherit the ruleset tags
        if isinstance(data, dict) and isinstance(data.get("articles"), dict):
            data = dict(data)
            tags = {"version": data.get("version"), "domain": data.get("domain")}
            data["articles"] = {
                key: ({"numero": key, **tags, **entry} if isinstance(entry, dict) else entry)
                for key, entry in data["articles"].items()
            }
        return data


class RoutingRule(BaseModel):
    """Contextual override: required phrase (OR) plus optional context phrase (OR)."""

    id: str = Field(..., min_length=1)
    required: list[str] = Field(..., min_length=1)
    context: list[str] = Field(default_factory=list)
    target: str
    boost: float = Field(default=3.0, gt=0)

    model_config = {"frozen": True}

    @field_validator("target")
    @classmethod
    def validate_target(cls, value: str) -> str:
        return _check_article_id(value)


class RoutingTable(BaseModel):
    """Direct mappings and contextual rules of one edition, in declaration order."""

    version: CodeVersion
    direct: dict[str, str] = Field(default_factory=dict)
    rules: list[RoutingRule] = Field(default_factory=list)

    @field_validator("direct")
    @classmethod
    def validate_direct(cls, value: dict[str, str]) -> dict[str, str]:
        for phrase, article_id in value.items():
            if not phrase.strip():
                raise ValueError("direct mapping phrase must not be empty")
            _check_article_id(article_id)
        return value

    @model_validator(mode="after")
    def unique_rule_ids(self) -> RoutingTable:
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"duplicate routing rule id {rule.id!r}")
            seen.add(rule.id)
        return self


class IntentVocabulary(BaseModel):
    """Phrase lists used by the intent analyzer."""

    exclusive_themes: dict[CodeVersion, list[str]]
    version_cues: dict[CodeVersion, list[str]]
    comparison_cues: list[str]
    version_labels: dict[CodeVersion, str]
    domains: dict[FiscalDomain, list[str]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_versions(self) -> IntentVocabulary:
        for name in ("exclusive_themes", "version_cues", "version_labels"):
            missing = set(CodeVersion) - set(getattr(self, name))
            if missing:
                raise ValueError(
                    f"{name} is missing versions: {sorted(v.value for v in missing)}"
                )
        legacy = {p.lower() for p in self.exclusive_themes[CodeVersion.V2025]}
        current = {p.lower() for p in self.exclusive_themes[CodeVersion.V2026]}
        overlap = legacy & current
        if overlap:
            raise ValueError(f"exclusive theme sets overlap: {sorted(overlap)}")
        return self


class RuleCatalog(BaseModel):
    """All static tables, loaded once at process start."""

    rulesets: dict[CodeVersion, list[DomainRuleset]]
    routing: dict[CodeVersion, RoutingTable]
    intent: IntentVocabulary

    def rulesets_for(self, version: CodeVersion) -> list[DomainRuleset]:
        return self.rulesets.get(version, [])

    def routing_for(self, version: CodeVersion) -> RoutingTable:
        return self.routing.get(version) or RoutingTable(version=version)

    def stats(self) -> dict[str, Any]:
        """Table sizes per edition, for startup logs and the CLI."""
        return {
            version.value: {
                "rulesets": len(self.rulesets_for(version)),
                "keywords": sum(len(r.keywords) for r in self.rulesets_for(version)),
                "synonyms": sum(len(r.synonyms) for r in self.rulesets_for(version)),
                "articles": sum(len(r.articles) for r in self.rulesets_for(version)),
                "direct_mappings": len(self.routing_for(version).direct),
                "routing_rules": len(self.routing_for(version).rules),
            }
            for version in CodeVersion
        }


def _read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Rule table not found: {path}", {"path": str(path)}) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Rule table is not valid JSON: {path}",
            {"path": str(path), "line": e.lineno, "column": e.colno},
        ) from e


def _validation_details(path: Path, error: ValidationError) -> dict[str, Any]:
    return {
        "path": str(path),
        "errors": [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
            for err in error.errors()
        ],
    }


def load_rule_catalog(rules_dir: str | Path | None = None) -> RuleCatalog:
    """
    Load and validate every rule table.

    Args:
        rules_dir: Directory containing index.json (default: packaged tables)

    Returns:
        Validated RuleCatalog

    Raises:
        ConfigurationError: If any table is missing, unreadable or malformed
    """
    root = Path(rules_dir) if rules_dir else DEFAULT_RULES_DIR
    index = _read_json(root / "index.json")

    if not isinstance(index, dict) or "versions" not in index or "intent" not in index:
        raise ConfigurationError(
            "index.json must define 'versions' and 'intent'", {"path": str(root)}
        )

    rulesets: dict[CodeVersion, list[DomainRuleset]] = {}
    routing: dict[CodeVersion, RoutingTable] = {}

    for version_key, entry in index["versions"].items():
        try:
            version = CodeVersion(version_key)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown code version in index.json: {version_key!r}"
            ) from e

        loaded: list[DomainRuleset] = []
        for filename in entry.get("rulesets", []):
            path = root / filename
            try:
                ruleset = DomainRuleset.model_validate(_read_json(path))
            except ValidationError as e:
                raise ConfigurationError(
                    f"Malformed ruleset: {path.name}", _validation_details(path, e)
                ) from e
            if ruleset.version != version:
                raise ConfigurationError(
                    f"Ruleset {path.name} declares version {ruleset.version.value}, "
                    f"listed under {version.value}",
                    {"path": str(path)},
                )
            loaded.append(ruleset)
        rulesets[version] = loaded

        if entry.get("routing"):
            path = root / entry["routing"]
            try:
                routing[version] = RoutingTable.model_validate(_read_json(path))
            except ValidationError as e:
                raise ConfigurationError(
                    f"Malformed routing table: {path.name}", _validation_details(path, e)
                ) from e

    intent_path = root / index["intent"]
    try:
        intent = IntentVocabulary.model_validate(_read_json(intent_path))
    except ValidationError as e:
        raise ConfigurationError(
            "Malformed intent vocabulary", _validation_details(intent_path, e)
        ) from e

    catalog = RuleCatalog(rulesets=rulesets, routing=routing, intent=intent)
    logger.info("Rule tables loaded from %s: %s", root, catalog.stats())
    return catalog
