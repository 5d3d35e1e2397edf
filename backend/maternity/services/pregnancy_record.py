"""
PregnancyRecordService: lifecycle of a patient's current pregnancy.

add -> (edit / scan update)* -> complete, with remove allowed at any point.
A patient has at most one record; adding a new pregnancy replaces it.

This is the boundary that owns user input, so date strings are parsed
and validated here before reaching the dating functions.
"""

import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional
from sqlalchemy.orm import Session as DbSession

from maternity.config import config
from maternity.db.postgres import get_db_session
from maternity.models import (
    PregnancyRecord,
    OutcomeType,
    DeliveryMode,
    Gender,
    BabyStatus,
)
from maternity.services.pregnancy_dating import build_dating_summary


class PregnancyRecordError(Exception):
    """Base class for record service errors."""


class ValidationError(PregnancyRecordError, ValueError):
    """User-supplied input is malformed or incomplete."""


class PregnancyNotFoundError(PregnancyRecordError, LookupError):
    """The patient has no pregnancy record."""


class PregnancyStateError(PregnancyRecordError, ValueError):
    """The record's outcome does not allow the requested change."""


def parse_date_input(value: Any, field: str, required: bool = False) -> Optional[date]:
    """
    Parse an ISO ``YYYY-MM-DD`` date coming from a form or request body.

    Empty values become None (or raise when required). Datetimes are
    truncated to their date.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a date string (YYYY-MM-DD)")
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    # Full ISO datetimes only; a trailing Z means UTC
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError(f"{field} is not a valid date: {value!r}") from None


def clean_text(value: Any, field: str) -> Optional[str]:
    """
    Stripped free text from a form. Numbers (e.g. a birth weight) are
    taken as their string form; anything else is rejected.
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(f"{field} must be text")
    return str(value).strip()


def resolve_corrected_edd(has_corrected_edd: Any, corrected_edd: Any) -> Optional[date]:
    """Corrected EDD from the form's yes/no flag plus date; "no" discards the date."""
    if not has_corrected_edd:
        return None
    return parse_date_input(corrected_edd, "corrected_edd", required=True)


class PregnancyRecordService:
    """
    Read/write operations for the current pregnancy record.
    """

    # Fields an edit may touch while the pregnancy is ongoing
    EDITABLE_FIELDS = {
        "lmp_date",
        "scan_date",
        "scan_edd",
        "has_corrected_edd",
        "corrected_edd",
        "complications",
        "remarks",
    }

    def __init__(self, db_session: Optional[DbSession] = None):
        self._db = db_session
        self.logger = logging.getLogger("service.PregnancyRecordService")

    @property
    def db(self) -> DbSession:
        if self._db is None:
            self._db = get_db_session()
        return self._db

    # -------------------------------------------------------------------------
    # Read operations
    # -------------------------------------------------------------------------

    def get_current(self, patient_key: str) -> Optional[PregnancyRecord]:
        """Get the patient's pregnancy record, if any."""
        return (
            self.db.query(PregnancyRecord)
            .filter(PregnancyRecord.patient_key == patient_key)
            .order_by(PregnancyRecord.created_at.desc())
            .first()
        )

    def get_pregnancy_state(self, patient_key: str, today: Optional[date] = None) -> dict:
        """
        Get the pregnancy state for UI rendering.

        Dating values are included only while the pregnancy is ongoing;
        after completion LMP/EDD are historical.
        """
        record = self.get_current(patient_key)
        if not record:
            return {
                "found": False,
                "patient_key": patient_key,
                "has_active_pregnancy": False,
                "pregnancy": None,
                "dating": None,
            }

        return {
            "found": True,
            "patient_key": patient_key,
            "has_active_pregnancy": record.is_ongoing,
            "pregnancy": record.to_dict(),
            "dating": build_dating_summary(record, today) if record.is_ongoing else None,
        }

    # -------------------------------------------------------------------------
    # Write operations
    # -------------------------------------------------------------------------

    def add_pregnancy(
        self,
        patient_key: str,
        lmp_date: Any,
        scan_edd: Any = None,
        scan_date: Any = None,
        has_corrected_edd: bool = False,
        corrected_edd: Any = None,
        created_by: Optional[str] = None,
    ) -> PregnancyRecord:
        """
        Start tracking a new pregnancy.

        Any existing record for the patient is discarded. Raises
        ValidationError if LMP is missing or a date is malformed.
        """
        patient_key = self._require_patient_key(patient_key)
        lmp = parse_date_input(lmp_date, "lmp_date", required=True)
        scan = parse_date_input(scan_edd, "scan_edd")
        scanned_on = parse_date_input(scan_date, "scan_date")
        corrected = resolve_corrected_edd(has_corrected_edd, corrected_edd)
        actor = created_by or config.DEFAULT_ACTOR

        replaced = self._delete_records(patient_key)
        if replaced:
            self.logger.info(f"Replacing {replaced} existing pregnancy record(s) for {patient_key}")

        now = datetime.utcnow()
        record = PregnancyRecord(
            patient_key=patient_key,
            outcome=OutcomeType.ONGOING,
            lmp_date=lmp,
            scan_date=scanned_on,
            scan_edd=scan,
            corrected_edd=corrected,
            delivery_mode=DeliveryMode.NA,
            gender=Gender.NA,
            baby_status=BabyStatus.NA,
            complications=[],
            remarks="",
            created_at=now,
            created_by=actor,
            updated_at=now,
            updated_by=actor,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        self.logger.info(f"Added pregnancy {record.pregnancy_id} for {patient_key} (LMP {lmp})")
        return record

    def update_pregnancy(
        self,
        patient_key: str,
        updated_by: Optional[str] = None,
        **fields: Any,
    ) -> PregnancyRecord:
        """
        Edit dating inputs or notes of an ongoing pregnancy.

        Only keys present in ``fields`` change. has_corrected_edd=False
        clears the corrected EDD regardless of corrected_edd.
        """
        unknown = set(fields) - self.EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        record = self._get_ongoing(patient_key)

        # Validate everything before touching the record
        changes = {}
        if "lmp_date" in fields:
            changes["lmp_date"] = parse_date_input(fields["lmp_date"], "lmp_date", required=True)
        if "scan_edd" in fields:
            changes["scan_edd"] = parse_date_input(fields["scan_edd"], "scan_edd")
        if "scan_date" in fields:
            changes["scan_date"] = parse_date_input(fields["scan_date"], "scan_date")
        if "has_corrected_edd" in fields:
            changes["corrected_edd"] = resolve_corrected_edd(
                fields["has_corrected_edd"], fields.get("corrected_edd")
            )
        elif "corrected_edd" in fields:
            changes["corrected_edd"] = parse_date_input(fields["corrected_edd"], "corrected_edd")
        if "complications" in fields:
            changes["complications"] = self._clean_complications(fields["complications"])
        if "remarks" in fields:
            changes["remarks"] = clean_text(fields["remarks"], "remarks") or ""

        for name, value in changes.items():
            setattr(record, name, value)
        self._touch(record, updated_by)
        self.db.commit()
        self.db.refresh(record)
        self.logger.info(f"Updated pregnancy {record.pregnancy_id}: {', '.join(sorted(fields))}")
        return record

    def update_scan_edd(
        self,
        patient_key: str,
        scan_date: Any,
        scan_edd: Any,
        updated_by: Optional[str] = None,
    ) -> PregnancyRecord:
        """Record the EDD from an ultrasound dating scan."""
        scanned_on = parse_date_input(scan_date, "scan_date", required=True)
        scan = parse_date_input(scan_edd, "scan_edd", required=True)
        record = self._get_ongoing(patient_key)
        record.scan_date = scanned_on
        record.scan_edd = scan
        self._touch(record, updated_by)
        self.db.commit()
        self.db.refresh(record)
        self.logger.info(f"Scan EDD {record.scan_edd} recorded for pregnancy {record.pregnancy_id}")
        return record

    def complete_pregnancy(
        self,
        patient_key: str,
        outcome: str,
        delivery_mode: Optional[str] = None,
        birth_weight: Optional[str] = None,
        gender: Optional[str] = None,
        remarks: Optional[str] = None,
        complications: Optional[Iterable[str]] = None,
        updated_by: Optional[str] = None,
    ) -> PregnancyRecord:
        """
        Close the pregnancy with a terminal outcome.

        Delivery details are kept only for live births and stillbirths.
        The record is read-only afterwards.
        """
        if outcome not in OutcomeType.TERMINAL:
            raise ValidationError(
                f"outcome must be one of: {', '.join(OutcomeType.TERMINAL)}"
            )
        record = self._get_ongoing(patient_key)

        if outcome in OutcomeType.WITH_DELIVERY:
            mode = delivery_mode or DeliveryMode.NVD
            if mode not in DeliveryMode.ALL:
                raise ValidationError(f"Unknown delivery_mode: {mode}")
            sex = gender or Gender.NA
            if sex not in Gender.ALL:
                raise ValidationError(f"Unknown gender: {sex}")
            weight = clean_text(birth_weight, "birth_weight") or None
        else:
            mode, sex, weight = DeliveryMode.NA, Gender.NA, None
        cleaned = self._clean_complications(complications) if complications is not None else None
        notes = clean_text(remarks, "remarks")

        record.delivery_mode = mode
        record.birth_weight = weight
        record.gender = sex
        record.baby_status = BabyStatus.LIVING if outcome == OutcomeType.LIVE_BIRTH else BabyStatus.NA
        record.outcome = outcome
        if notes is not None:
            record.remarks = notes
        if cleaned is not None:
            record.complications = cleaned

        self._touch(record, updated_by)
        self.db.commit()
        self.db.refresh(record)
        self.logger.info(f"Completed pregnancy {record.pregnancy_id} with outcome {outcome}")
        return record

    def remove_pregnancy(self, patient_key: str) -> bool:
        """Discard the patient's record whatever its outcome. False if none existed."""
        removed = self._delete_records(patient_key)
        self.db.commit()
        if removed:
            self.logger.info(f"Removed pregnancy record for {patient_key}")
        return removed > 0

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_patient_key(patient_key: Optional[str]) -> str:
        if not isinstance(patient_key, str) or not patient_key.strip():
            raise ValidationError("patient_key is required")
        return patient_key.strip()

    def _get_ongoing(self, patient_key: str) -> PregnancyRecord:
        record = self.get_current(patient_key)
        if record is None:
            raise PregnancyNotFoundError(f"No pregnancy record for patient {patient_key}")
        if not record.is_ongoing:
            self.logger.warning(
                f"Rejected change to completed pregnancy {record.pregnancy_id} ({record.outcome})"
            )
            raise PregnancyStateError(
                f"Pregnancy already completed ({record.outcome}); record is read-only"
            )
        return record

    def _delete_records(self, patient_key: str) -> int:
        return (
            self.db.query(PregnancyRecord)
            .filter(PregnancyRecord.patient_key == patient_key)
            .delete(synchronize_session="fetch")
        )

    def _touch(self, record: PregnancyRecord, updated_by: Optional[str]) -> None:
        record.updated_at = datetime.utcnow()
        record.updated_by = updated_by or config.DEFAULT_ACTOR

    @staticmethod
    def _clean_complications(complications: Any) -> list:
        if isinstance(complications, str) or not isinstance(complications, (list, tuple, set)):
            raise ValidationError("complications must be a list of strings")
        return [str(c).strip() for c in complications if str(c).strip()]
