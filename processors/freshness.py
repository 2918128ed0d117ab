"""Freshness policy checks for cited sources and used chunks.

The hotel record's policy maps a source type to a maximum age in days.
Every citation and every used chunk in a produced section is checked; types
without a configured limit are skipped.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from schemas.brief import AnySection, SectionKey

logger = logging.getLogger(__name__)


def days_old(item_date: date, today: date) -> int:
    return (today - item_date).days


@dataclass
class FreshnessItem:
    item_date: date
    source_type: str
    label: str


@dataclass
class FreshnessReport:
    warnings: list[str] = field(default_factory=list)

    @property
    def compliance(self) -> str:
        return "WARN" if self.warnings else "PASS"


def section_items(section: AnySection) -> list[FreshnessItem]:
    """Citations first, then used chunks."""
    items = [
        FreshnessItem(c.date, c.source_type.value, f"{c.source_id} ({c.source_type.value})")
        for c in section.citations
    ]
    items.extend(
        FreshnessItem(c.date, c.source_type, f"{c.chunk_id} ({c.source_type})")
        for c in section.semantic_chunks_used
    )
    return items


class FreshnessEvaluator:
    """Checks item ages against a per-source-type max-age policy."""

    def __init__(self, max_age_days_by_source_type: dict[str, int], today: date):
        self.policy = max_age_days_by_source_type
        self.today = today

    def evaluate(self, sections: list[tuple[SectionKey, AnySection]]) -> FreshnessReport:
        report = FreshnessReport()
        for key, section in sections:
            for item in section_items(section):
                max_age = self.policy.get(item.source_type)
                if max_age is None:
                    continue
                age = days_old(item.item_date, self.today)
                if age > max_age:
                    report.warnings.append(
                        f"{key.value}: {item.label} exceeds max age {max_age}d (age {age}d)"
                    )

        if report.warnings:
            logger.warning("Freshness policy WARN: %d stale items", len(report.warnings))
        return report
