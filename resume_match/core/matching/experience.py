"""
Years-of-experience extraction and scoring.

Explicit statements ("5 years of experience", "7+ years") win over dates.
Without them, employment date ranges are summed; without ranges, the
earliest "Month YYYY" mention is taken as the career start.
"""

import math
import re
from datetime import date
from typing import Optional

from resume_match.utils.constants import (
    EARLIEST_PLAUSIBLE_YEAR,
    MAX_PLAUSIBLE_YEARS,
    MIN_PLAUSIBLE_YEARS,
    MONTH_ABBREVIATIONS,
    MONTH_NAMES,
    YEARS_SCORE_LINEAR_SLOPE,
    YEARS_SCORE_STEPS,
)

# Checked in order; the largest plausible value across all of them wins
EXPLICIT_YEARS_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\b(\d+)\s*years?\s*(?:of\s*)?(?:experience|exp)"),
    re.compile(r"\b(\d+)\+?\s*years?"),
    re.compile(r"experience[:\s]+(\d+)\s*years?"),
    re.compile(r"\b(\d+)\s*y\.?o\.?(?![a-z])"),
)

DATE_RANGE_PATTERN = re.compile(
    r"(\d{4}|\w+\.?\s+\d{4})\s*[-–—]+\s*(\d{4}|\w+\.?\s+\d{4}|present|current)"
)

MONTH_YEAR_PATTERN = re.compile(
    r"\b(" + "|".join(MONTH_NAMES + MONTH_ABBREVIATIONS) + r")\.?\s+(\d{4})\b"
)

YEAR_PATTERN = re.compile(r"\d{4}")


def month_index(text: str) -> Optional[int]:
    """0-based month of the leading word ("March 2020", "sept 2019")."""
    words = text.strip().split()
    if not words:
        return None
    token = words[0].rstrip(".")
    for i, (name, abbr) in enumerate(zip(MONTH_NAMES, MONTH_ABBREVIATIONS)):
        if token == abbr or (token.startswith(abbr) and name.startswith(token)):
            return i
    return None


def _months_to_years(months: int) -> int:
    return max(0, math.ceil(months / 12))


class ExperienceExtractor:
    """Best-effort total years of experience from free text."""

    def __init__(self, today: Optional[date] = None):
        """
        Args:
            today: Reference date for "present" and open-ended mentions.
                Defaults to the current date at extraction time.
        """
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def extract_years(self, text: Optional[str]) -> Optional[int]:
        """
        Estimate years of experience.

        Returns:
            Whole years, or None when the text holds no usable
            information. Zero is a real answer and differs from None.
        """
        if not text:
            return None
        lowered = text.lower()

        explicit = self.explicit_years(lowered)
        if explicit is not None:
            return explicit

        from_ranges = self.years_from_ranges(lowered)
        if from_ranges is not None:
            return from_ranges

        return self.years_since_earliest_mention(lowered)

    def explicit_years(self, text: str) -> Optional[int]:
        """Largest plausible value stated as N years."""
        values = [
            int(match.group(1))
            for pattern in EXPLICIT_YEARS_PATTERNS
            for match in pattern.finditer(text)
        ]
        plausible = [v for v in values if MIN_PLAUSIBLE_YEARS <= v <= MAX_PLAUSIBLE_YEARS]
        return max(plausible) if plausible else None

    def _plausible_year(self, year: int) -> bool:
        return EARLIEST_PLAUSIBLE_YEAR <= year <= self.today.year + 1

    def years_from_ranges(self, text: str) -> Optional[int]:
        """
        Sum the month spans of "start - end" date ranges.

        A start without a month counts from January; an end without a
        month counts to December. Negative spans count as zero.
        """
        today = self.today
        total_months = 0
        found = False

        for match in DATE_RANGE_PATTERN.finditer(text):
            start, end = match.group(1), match.group(2)

            start_year_match = YEAR_PATTERN.search(start)
            if not start_year_match:
                continue
            start_year = int(start_year_match.group())
            start_month = month_index(start)
            if start_month is None:
                start_month = 0

            if end in ("present", "current"):
                end_year, end_month = today.year, today.month - 1
            else:
                end_year = int(YEAR_PATTERN.search(end).group())
                end_month = month_index(end)
                if end_month is None:
                    end_month = 11

            if not (self._plausible_year(start_year) and self._plausible_year(end_year)):
                continue

            found = True
            total_months += max(0, (end_year - start_year) * 12 + (end_month - start_month))

        return _months_to_years(total_months) if found else None

    def years_since_earliest_mention(self, text: str) -> Optional[int]:
        """Years from the earliest "Month YYYY" mention until today."""
        dates = []
        for match in MONTH_YEAR_PATTERN.finditer(text):
            month = month_index(match.group(1))
            year = int(match.group(2))
            if month is not None and self._plausible_year(year):
                dates.append((year, month))

        if not dates:
            return None

        year, month = min(dates)
        today = self.today
        return _months_to_years((today.year - year) * 12 + (today.month - 1 - month))


def years_score(required_years: Optional[int], resume_years: Optional[int]) -> float:
    """
    Score how well resume experience meets the requirement.

    No requirement (None or 0) is always satisfied. A requirement with no
    extractable resume years scores 0.
    """
    if not required_years:
        return 1.0
    if resume_years is None:
        return 0.0

    ratio = resume_years / required_years
    for min_ratio, score in YEARS_SCORE_STEPS:
        if ratio >= min_ratio:
            return score
    return max(0.0, ratio * YEARS_SCORE_LINEAR_SLOPE)
