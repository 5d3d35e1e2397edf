"""
Pregnancy dating: gestational age, EDD and trimester.

Pure functions over dates. Nothing here reads a clock implicitly; every
function that depends on "today" takes it as an argument and only falls
back to date.today() when the caller leaves it out.

EDD precedence is strict: corrected > scan > lmp.

Records passed in only need ``lmp_date``, ``scan_edd`` and
``corrected_edd`` attributes (the ORM model and PregnancyDates both do).
Input validation belongs to the caller; these functions assume dates.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

# 40 weeks from LMP
DAYS_IN_PREGNANCY = 280
WEEKS_IN_PREGNANCY = 40

# First week of the 2nd and 3rd trimesters
SECOND_TRIMESTER_START_WEEK = 14
THIRD_TRIMESTER_START_WEEK = 28

TRIMESTER_LABELS = {
    1: "First Trimester",
    2: "Second Trimester",
    3: "Third Trimester",
}

EDD_SOURCE_CORRECTED = "corrected"
EDD_SOURCE_SCAN = "scan"
EDD_SOURCE_LMP = "lmp"

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

EDD_SOURCE_TEXT = {
    EDD_SOURCE_CORRECTED: "Calculated from Corrected EDD",
    EDD_SOURCE_SCAN: "Calculated from Scan EDD",
    EDD_SOURCE_LMP: "Calculated from LMP",
}


@dataclass(frozen=True)
class GestationalAge:
    """Gestational age as completed weeks plus days."""
    weeks: int
    days: int

    @classmethod
    def from_days(cls, total_days: int) -> "GestationalAge":
        weeks, days = divmod(total_days, 7)
        return cls(weeks=weeks, days=days)

    @property
    def total_days(self) -> int:
        return self.weeks * 7 + self.days

    def to_dict(self) -> Dict[str, int]:
        return {"weeks": self.weeks, "days": self.days}

    def __str__(self) -> str:
        return f"{self.weeks}w {self.days}d"


@dataclass(frozen=True)
class Trimester:
    trimester: int
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"trimester": self.trimester, "label": self.label}


@dataclass(frozen=True)
class PregnancyDates:
    """The dating inputs of a pregnancy, detached from storage."""
    lmp_date: Optional[date] = None
    scan_edd: Optional[date] = None
    corrected_edd: Optional[date] = None

    @property
    def has_corrected_edd(self) -> bool:
        return self.corrected_edd is not None


def _as_date(value: date) -> date:
    # datetime is a date subclass; drop the time of day
    if isinstance(value, datetime):
        return value.date()
    return value


def _today(today: Optional[date]) -> date:
    return _as_date(today) if today is not None else date.today()


# =============================================================================
# EDD
# =============================================================================

def calculate_edd_from_lmp(lmp_date: date) -> date:
    """LMP + 280 calendar days."""
    return _as_date(lmp_date) + timedelta(days=DAYS_IN_PREGNANCY)


def get_estimated_edd(record) -> Optional[date]:
    """Scan EDD when present, otherwise the LMP-derived EDD.

    Returns None when the record has neither.
    """
    if record.scan_edd is not None:
        return _as_date(record.scan_edd)
    if record.lmp_date is not None:
        return calculate_edd_from_lmp(record.lmp_date)
    return None


def get_estimated_edd_source(record) -> Optional[str]:
    if record.scan_edd is not None:
        return EDD_SOURCE_SCAN
    if record.lmp_date is not None:
        return EDD_SOURCE_LMP
    return None


def get_final_edd(record) -> Optional[date]:
    """Corrected EDD when present, otherwise the estimated EDD."""
    if record.corrected_edd is not None:
        return _as_date(record.corrected_edd)
    return get_estimated_edd(record)


def get_final_edd_source(record) -> Optional[str]:
    if record.corrected_edd is not None:
        return EDD_SOURCE_CORRECTED
    return get_estimated_edd_source(record)


# =============================================================================
# Gestational age
# =============================================================================

def gestational_age(reference_date: date, anchor_date: date) -> GestationalAge:
    """
    Elapsed-day gestational age from anchor_date to reference_date.

    Not clamped: an anchor after the reference date gives a negative age.
    """
    total_days = (_as_date(reference_date) - _as_date(anchor_date)).days
    return GestationalAge.from_days(total_days)


def gestational_age_from_lmp(lmp_date: date, today: Optional[date] = None) -> GestationalAge:
    return gestational_age(_today(today), lmp_date)


def gestational_age_from_scan_edd(scan_edd: date, today: Optional[date] = None) -> GestationalAge:
    """
    Gestational age implied by a scan EDD: 280 minus the days remaining.

    Clamped to 0w 0d when the scan EDD is more than 280 days away.
    """
    days_remaining = days_until_edd(scan_edd, today)
    total_days = DAYS_IN_PREGNANCY - days_remaining
    if total_days < 0:
        return GestationalAge(weeks=0, days=0)
    return GestationalAge.from_days(total_days)


def get_trimester(ga_weeks: int) -> Trimester:
    if ga_weeks < SECOND_TRIMESTER_START_WEEK:
        number = 1
    elif ga_weeks < THIRD_TRIMESTER_START_WEEK:
        number = 2
    else:
        number = 3
    return Trimester(trimester=number, label=TRIMESTER_LABELS[number])


def days_until_edd(final_edd: date, today: Optional[date] = None) -> int:
    """Signed days from today to the EDD; zero or less means due."""
    return (_as_date(final_edd) - _today(today)).days


def is_due(days_left: int) -> bool:
    return days_left <= 0


def pregnancy_progress_percent(ga_weeks: float) -> float:
    return min(ga_weeks * 100 / WEEKS_IN_PREGNANCY, 100.0)


# =============================================================================
# Display formatting
# =============================================================================

def format_date(value: date) -> str:
    """en-IN style date, e.g. '1 Mar 2024'."""
    return f"{value.day} {MONTH_ABBREVIATIONS[value.month - 1]} {value.year}"


def format_datetime(value: datetime) -> str:
    """en-IN style date and time, e.g. '1 Mar 2024, 02:30 pm'."""
    hour = value.hour % 12 or 12
    meridiem = "am" if value.hour < 12 else "pm"
    return f"{format_date(value)}, {hour:02d}:{value.minute:02d} {meridiem}"


# =============================================================================
# Summary
# =============================================================================

def build_dating_summary(record, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Every derived dating value for a record, as of ``today``.

    Used for both stored records and unsaved form previews so the two
    can never disagree. Values that cannot be computed are None.
    """
    today = _today(today)

    lmp_ga = (
        gestational_age_from_lmp(record.lmp_date, today)
        if record.lmp_date is not None
        else None
    )
    scan_ga = (
        gestational_age_from_scan_edd(record.scan_edd, today)
        if record.scan_edd is not None
        else None
    )
    # Trimester and progress follow LMP dating, scan dating when LMP is missing
    ga = lmp_ga if lmp_ga is not None else scan_ga

    estimated_edd = get_estimated_edd(record)
    final_edd = get_final_edd(record)
    final_source = get_final_edd_source(record)
    days_left = days_until_edd(final_edd, today) if final_edd is not None else None

    return {
        "as_of": today.isoformat(),
        "gestational_age": ga.to_dict() if ga else None,
        "lmp_gestational_age": lmp_ga.to_dict() if lmp_ga else None,
        "scan_gestational_age": scan_ga.to_dict() if scan_ga else None,
        "trimester": get_trimester(ga.weeks).to_dict() if ga else None,
        "progress_percent": pregnancy_progress_percent(ga.weeks) if ga else None,
        "estimated_edd": estimated_edd.isoformat() if estimated_edd else None,
        "estimated_edd_source": get_estimated_edd_source(record),
        "final_edd": final_edd.isoformat() if final_edd else None,
        "final_edd_source": final_source,
        "final_edd_source_text": EDD_SOURCE_TEXT.get(final_source),
        "days_until_edd": days_left,
        "scan_days_until_edd": (
            days_until_edd(record.scan_edd, today) if record.scan_edd is not None else None
        ),
        "is_due": is_due(days_left) if days_left is not None else None,
        "display": {
            "lmp_date": format_date(record.lmp_date) if record.lmp_date else "--",
            "estimated_edd": format_date(estimated_edd) if estimated_edd else "--",
            "final_edd": format_date(final_edd) if final_edd else "--",
            "gestational_age": str(ga) if ga else "--",
        },
    }
