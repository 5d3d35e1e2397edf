"""
SQLAlchemy models for the maternity backend.
"""

from .pregnancy import (
    PregnancyRecord,
    OutcomeType,
    DeliveryMode,
    Gender,
    BabyStatus,
    COMMON_COMPLICATIONS,
)

__all__ = [
    "PregnancyRecord",
    "OutcomeType",
    "DeliveryMode",
    "Gender",
    "BabyStatus",
    "COMMON_COMPLICATIONS",
]
