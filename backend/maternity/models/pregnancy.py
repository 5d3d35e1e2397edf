"""
Current pregnancy record model.

One row per patient while a pregnancy is tracked. The outcome starts as
Ongoing and moves exactly once to a terminal value; after that the
dating fields are historical.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Text, JSON, Uuid

from maternity.db.postgres import Base


# =============================================================================
# Enums (as string constants for flexibility)
# =============================================================================

class OutcomeType:
    """Pregnancy outcome values."""
    ONGOING = "Ongoing"
    LIVE_BIRTH = "Live Birth"
    STILLBIRTH = "Stillbirth"
    MISCARRIAGE = "Miscarriage"
    ABORTION = "Abortion"
    ECTOPIC = "Ectopic"

    TERMINAL = (LIVE_BIRTH, STILLBIRTH, MISCARRIAGE, ABORTION, ECTOPIC)
    # Outcomes for which delivery details are recorded
    WITH_DELIVERY = (LIVE_BIRTH, STILLBIRTH)


class DeliveryMode:
    """Mode of delivery values."""
    NVD = "NVD"
    LSCS = "LSCS"
    INSTRUMENTAL = "Instrumental"
    VACUUM = "Vacuum"
    FORCEPS = "Forceps"
    NA = "NA"

    ALL = (NVD, LSCS, INSTRUMENTAL, VACUUM, FORCEPS, NA)


class Gender:
    """Baby gender values."""
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"
    NA = "NA"

    ALL = (MALE, FEMALE, OTHER, NA)


class BabyStatus:
    """Baby status values."""
    LIVING = "Living"
    DECEASED = "Deceased"
    NA = "NA"


COMMON_COMPLICATIONS = [
    "Pre-eclampsia",
    "Gestational Diabetes",
    "PPH",
    "Preterm Labor",
    "IUGR",
    "Placenta Previa",
    "Anemia",
    "PIH",
]


class PregnancyRecord(Base):
    """
    The patient's current pregnancy.

    The corrected EDD is a plain optional date; "has a corrected EDD"
    is derived from it rather than stored beside it.
    """

    __tablename__ = "pregnancy_record"

    pregnancy_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_key = Column(String(255), nullable=False, index=True)
    outcome = Column(String(20), nullable=False, default=OutcomeType.ONGOING)

    # Dating inputs
    lmp_date = Column(Date, nullable=False)
    scan_date = Column(Date, nullable=True)
    scan_edd = Column(Date, nullable=True)
    corrected_edd = Column(Date, nullable=True)

    # Outcome details (populated at completion)
    delivery_mode = Column(String(20), nullable=False, default=DeliveryMode.NA)
    birth_weight = Column(String(20), nullable=True)
    gender = Column(String(10), nullable=False, default=Gender.NA)
    baby_status = Column(String(10), nullable=False, default=BabyStatus.NA)
    complications = Column(JSON, nullable=False, default=list)
    remarks = Column(Text, nullable=False, default="")

    # Audit
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_by = Column(String(255), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_by = Column(String(255), nullable=True)

    @property
    def has_corrected_edd(self) -> bool:
        return self.corrected_edd is not None

    @property
    def is_ongoing(self) -> bool:
        return self.outcome == OutcomeType.ONGOING

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "pregnancy_id": str(self.pregnancy_id),
            "patient_key": self.patient_key,
            "outcome": self.outcome,
            "lmp_date": self.lmp_date.isoformat() if self.lmp_date else None,
            "scan_date": self.scan_date.isoformat() if self.scan_date else None,
            "scan_edd": self.scan_edd.isoformat() if self.scan_edd else None,
            "has_corrected_edd": self.has_corrected_edd,
            "corrected_edd": self.corrected_edd.isoformat() if self.corrected_edd else None,
            "delivery_mode": self.delivery_mode,
            "birth_weight": self.birth_weight,
            "gender": self.gender,
            "baby_status": self.baby_status,
            "complications": list(self.complications or []),
            "remarks": self.remarks,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "created_by": self.created_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "updated_by": self.updated_by,
        }
