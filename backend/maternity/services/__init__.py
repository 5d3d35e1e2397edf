"""
Backend services for the maternity backend.

- pregnancy_dating: pure GA / EDD / trimester calculations
- PregnancyRecordService: current pregnancy lifecycle (add, edit, complete, remove)
"""

from .pregnancy_record import (
    PregnancyRecordService,
    PregnancyRecordError,
    ValidationError,
    PregnancyNotFoundError,
    PregnancyStateError,
    parse_date_input,
)

__all__ = [
    "PregnancyRecordService",
    "PregnancyRecordError",
    "ValidationError",
    "PregnancyNotFoundError",
    "PregnancyStateError",
    "parse_date_input",
]
