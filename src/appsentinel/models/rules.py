"""Pydantic models for the detector rule table."""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

from appsentinel.exceptions import RuleConfigError
from appsentinel.models.facts import Platform
from appsentinel.models.report import RiskLevel, Severity


class RuleSource(StrEnum):
    """Which facts a detector matches its keywords against."""

    PERMISSIONS = "permissions"
    CORPUS = "corpus"
    CORPUS_OR_PERMISSIONS = "corpus_or_permissions"
    NETWORK = "network"


class CategoryRule(BaseModel):
    """One detector: a keyword list plus its scoring weights."""

    model_config = ConfigDict(frozen=True)

    category: str
    """Finding category name (e.g. 'Permissions')."""

    severity: Severity

    source: RuleSource

    weight: int = Field(ge=0)
    """Points earned per distinct match."""

    possible: int = Field(ge=0)
    """Points this category adds to the denominator."""

    keywords: tuple[str, ...]
    """Ordered keywords or permission fragments to look for."""

    message: str
    """Finding message; ``{evidence}`` is replaced by the matches."""

    platforms: tuple[Platform, ...] | None = None
    """Platforms the category applies to (None means all)."""

    def applies_to(self, platform: Platform) -> bool:
        """Check whether this category is scored for a platform."""
        return self.platforms is None or platform in self.platforms


class LevelThreshold(BaseModel):
    """Scores strictly above ``above`` map to ``level``."""

    model_config = ConfigDict(frozen=True)

    above: int
    level: RiskLevel


class RuleSet(BaseModel):
    """Ordered detectors and risk level thresholds."""

    model_config = ConfigDict(frozen=True)

    version: str

    categories: tuple[CategoryRule, ...]
    """Detectors in evaluation order."""

    thresholds: tuple[LevelThreshold, ...]
    """Level thresholds, checked from highest to lowest."""

    @model_validator(mode="after")
    def _check_unique_categories(self) -> RuleSet:
        names = [rule.category for rule in self.categories]
        if len(names) != len(set(names)):
            raise ValueError("category names must be unique")
        return self

    @classmethod
    def from_file(cls, path: Path) -> RuleSet:
        """Load and validate a JSON rule table.

        Raises:
            RuleConfigError: If the file cannot be read or is invalid.
        """
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise RuleConfigError(f"Failed to read rule file {path}: {e}") from e

        try:
            return cls.model_validate(json.loads(raw))
        except ValueError as e:
            raise RuleConfigError(f"Invalid rule file {path}: {e}") from e

    def get(self, category: str) -> CategoryRule | None:
        """Find a category rule by name."""
        for rule in self.categories:
            if rule.category == category:
                return rule
        return None
