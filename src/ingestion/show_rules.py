"""
Per-show rules used while resolving containers.

Most shows key year-based seasons on the calendar year of the parent's
premiere. Shows that need different rules are registered by show slug in
SHOW_RULES and looked up with rules_for().
"""

from typing import Optional, Protocol

from src.db.models import Task


class ShowRules(Protocol):
    name: str

    def season_year(self, task: Task) -> Optional[int]:
        """Four digit season year for shows whose seasons are keyed by year."""
        ...


class DefaultShowRules:
    """Season year is the calendar year of the parent's premiere."""

    name = "default"

    def season_year(self, task: Task) -> Optional[int]:
        return task.get_parent_premiere_year()


class AlmanacRules:
    """Almanac seasons follow the fiscal year, which starts in September."""

    name = "almanac"
    fiscal_year_start_month = 9

    def season_year(self, task: Task) -> Optional[int]:
        premiere = task.parent_premiered_on_utc
        if not premiere:
            return None
        year, month = int(premiere[:4]), int(premiere[5:7])
        return year + 1 if month >= self.fiscal_year_start_month else year


DEFAULT_RULES: ShowRules = DefaultShowRules()

SHOW_RULES: dict[str, ShowRules] = {
    "almanac": AlmanacRules(),
}


def rules_for(show_slug: Optional[str]) -> ShowRules:
    return SHOW_RULES.get(show_slug or "", DEFAULT_RULES)
