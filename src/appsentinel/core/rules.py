"""Rule engine: evaluate detectors against PackageFacts and score the result."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Final

from appsentinel.models.facts import PackageFacts
from appsentinel.models.report import AnalysisResult, Finding, RiskLevel
from appsentinel.models.rules import CategoryRule, LevelThreshold, RuleSet, RuleSource
from appsentinel.utils.config import get_rules_file

logger = logging.getLogger(__name__)

NETWORK_MARKERS: tuple[str, ...] = ("HTTP", "cleartext")

DEFAULT_RULE_TABLE: dict[str, Any] = {
    "version": "1",
    "categories": [
        {
            "category": "Permissions",
            "severity": "HIGH",
            "source": "permissions",
            "weight": 3,
            "possible": 15,
            "platforms": ["android"],
            "message": "Suspicious permissions detected: {evidence}",
            "keywords": [
                "SEND_SMS",
                "RECEIVE_SMS",
                "READ_SMS",
                "WRITE_SMS",
                "CALL_PHONE",
                "READ_PHONE_STATE",
                "PROCESS_OUTGOING_CALLS",
                "WRITE_SETTINGS",
                "WRITE_SECURE_SETTINGS",
                "SYSTEM_ALERT_WINDOW",
                "DEVICE_POWER",
                "REBOOT",
                "MOUNT_UNMOUNT_FILESYSTEMS",
                "INSTALL_PACKAGES",
                "DELETE_PACKAGES",
                "CLEAR_APP_USER_DATA",
            ],
        },
        {
            "category": "Payment Data",
            "severity": "HIGH",
            "source": "corpus",
            "weight": 4,
            "possible": 20,
            "message": "Requests sensitive payment information: {evidence}",
            "keywords": [
                "credit card",
                "debit card",
                "cvv",
                "card number",
                "expiry",
                "account number",
                "routing number",
                "bank account",
                "payment",
                "billing",
                "transaction",
            ],
        },
        {
            "category": "Privacy",
            "severity": "MEDIUM",
            "source": "corpus",
            "weight": 2,
            "possible": 10,
            "message": "Requests sensitive personal data: {evidence}",
            "keywords": [
                "aadhar",
                "aadhaar",
                "passport",
                "ssn",
                "social security",
                "national id",
                "identity card",
                "license number",
            ],
        },
        {
            "category": "Social Media Access",
            "severity": "HIGH",
            "source": "corpus_or_permissions",
            "weight": 3,
            "possible": 15,
            "message": "Attempts to access social media apps: {evidence}",
            "keywords": [
                "whatsapp",
                "telegram",
                "instagram",
                "facebook",
                "youtube",
                "snapchat",
                "linkedin",
                "twitter",
                "tiktok",
            ],
        },
        {
            "category": "Network Security",
            "severity": "MEDIUM",
            "source": "network",
            "weight": 2,
            "possible": 10,
            "message": "Uses insecure network connections",
            "keywords": list(NETWORK_MARKERS),
        },
    ],
    "thresholds": [
        {"above": 70, "level": "CRITICAL"},
        {"above": 50, "level": "HIGH"},
        {"above": 30, "level": "MEDIUM"},
    ],
}

DEFAULT_RULES: Final[RuleSet] = RuleSet.model_validate(DEFAULT_RULE_TABLE)


def load_rules(path: Path | None = None) -> RuleSet:
    """Resolve the active rule table.

    Lookup order: explicit path, $APPSENTINEL_RULES, the ``rules_file``
    config key, then the built-in table.

    Raises:
        RuleConfigError: If a configured rule file is unreadable or invalid.
    """
    if path is None:
        path = get_rules_file()

    if path is None:
        return DEFAULT_RULES

    logger.debug("Loading rule table from %s", path)
    return RuleSet.from_file(path)


def _dedupe(items: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def match_rule(rule: CategoryRule, facts: PackageFacts) -> tuple[str, ...]:
    """Return the ordered, de-duplicated evidence a rule finds in the facts."""
    if rule.source == RuleSource.PERMISSIONS:
        return _dedupe(
            [
                perm
                for perm in facts.permissions
                if any(keyword in perm for keyword in rule.keywords)
            ]
        )

    if rule.source == RuleSource.CORPUS:
        return _dedupe(
            [kw for kw in rule.keywords if kw.lower() in facts.text_corpus]
        )

    if rule.source == RuleSource.CORPUS_OR_PERMISSIONS:
        lowered = [perm.lower() for perm in facts.permissions]
        return _dedupe(
            [
                kw
                for kw in rule.keywords
                if kw.lower() in facts.text_corpus
                or any(kw.lower() in perm for perm in lowered)
            ]
        )

    # RuleSource.NETWORK
    return _dedupe(
        [
            notice
            for notice in facts.network_findings
            if any(keyword in notice for keyword in rule.keywords)
        ]
    )


def compute_score(earned: int, possible: int) -> int:
    """Percentage of possible points earned, rounded half-up into 0..100."""
    if possible <= 0:
        return 0
    score = math.floor(100 * earned / possible + 0.5)
    return max(0, min(100, score))


def risk_level_for(
    score: int, thresholds: tuple[LevelThreshold, ...] = DEFAULT_RULES.thresholds
) -> RiskLevel:
    """Map a score onto a risk level; the first threshold exceeded wins."""
    for threshold in sorted(thresholds, key=lambda t: t.above, reverse=True):
        if score > threshold.above:
            return threshold.level
    return RiskLevel.LOW


class RuleEngine:
    """Evaluate a rule table against package facts."""

    def __init__(self, rules: RuleSet | None = None):
        """Initialize the engine.

        Args:
            rules: Rule table to apply. Defaults to the built-in table.
        """
        self.rules = rules or DEFAULT_RULES

    def evaluate(self, facts: PackageFacts) -> AnalysisResult:
        """Run every applicable detector in order and aggregate a score."""
        findings: list[Finding] = []
        earned = 0
        possible = 0

        for rule in self.rules.categories:
            if not rule.applies_to(facts.platform):
                logger.debug("Skipping %s on %s", rule.category, facts.platform)
                continue

            possible += rule.possible
            evidence = match_rule(rule, facts)
            if not evidence:
                continue

            earned += len(evidence) * rule.weight
            message = rule.message.replace("{evidence}", ", ".join(evidence))
            findings.append(
                Finding(
                    severity=rule.severity,
                    category=rule.category,
                    message=message,
                    evidence=evidence,
                )
            )

        score = compute_score(earned, possible)
        level = risk_level_for(score, self.rules.thresholds)
        logger.debug(
            "Scored %d/%d points -> %d (%s)", earned, possible, score, level.value
        )

        return AnalysisResult(
            facts=facts,
            findings=tuple(findings),
            score=score,
            level=level,
            earned=earned,
            possible=possible,
        )
