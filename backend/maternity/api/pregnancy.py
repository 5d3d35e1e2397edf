"""
Current Pregnancy API endpoints.

Provides endpoints for:
- Fetching the current pregnancy with derived dating values
- Adding, editing and removing the pregnancy
- Recording a scan EDD
- Completing the pregnancy with an outcome
- Previewing EDD / GA for unsaved form input
"""

from functools import wraps
from flask import Blueprint, request, jsonify

from maternity.config import config
from maternity.db.postgres import get_db_session
from maternity.services.pregnancy_dating import PregnancyDates, build_dating_summary
from maternity.services.pregnancy_record import (
    PregnancyRecordService,
    ValidationError,
    PregnancyNotFoundError,
    PregnancyStateError,
    parse_date_input,
    resolve_corrected_edd,
)


bp = Blueprint("pregnancy", __name__, url_prefix="/api/v1/pregnancy")


def get_current_actor() -> str:
    """Name recorded in audit fields for this request."""
    # TODO: Take the actor from the auth session once login is wired in
    return (request.headers.get("X-User-Name") or "").strip() or config.DEFAULT_ACTOR


def get_service() -> PregnancyRecordService:
    return PregnancyRecordService(get_db_session())


def handle_record_errors(view):
    """Map record service errors to JSON error responses."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
        except PregnancyNotFoundError as e:
            return jsonify({"ok": False, "error": str(e)}), 404
        except PregnancyStateError as e:
            return jsonify({"ok": False, "error": str(e)}), 409
    return wrapper


def get_json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def get_patient_key(data: dict = None) -> str:
    source = data if data is not None else request.args
    patient_key = source.get("patient_key")
    if not isinstance(patient_key, str) or not patient_key.strip():
        raise ValidationError("patient_key is required")
    return patient_key.strip()


def get_today():
    """The ?today= pin for dating values; None means the real date."""
    return parse_date_input(request.args.get("today"), "today")


def record_response(service: PregnancyRecordService, patient_key: str, today=None, status: int = 200):
    state = service.get_pregnancy_state(patient_key, today=today)
    return jsonify({"ok": True, **state}), status


# =============================================================================
# Record endpoints
# =============================================================================

@bp.route("/current", methods=["GET"])
@handle_record_errors
def get_current_pregnancy():
    """Current pregnancy plus dating summary (as of ?today=, default now)."""
    patient_key = get_patient_key()
    return record_response(get_service(), patient_key, get_today())


@bp.route("/current", methods=["POST"])
@handle_record_errors
def add_pregnancy():
    data = get_json_body()
    patient_key = get_patient_key(data)
    today = get_today()
    service = get_service()
    service.add_pregnancy(
        patient_key,
        lmp_date=data.get("lmp_date"),
        scan_edd=data.get("scan_edd"),
        scan_date=data.get("scan_date"),
        has_corrected_edd=bool(data.get("has_corrected_edd")),
        corrected_edd=data.get("corrected_edd"),
        created_by=get_current_actor(),
    )
    return record_response(service, patient_key, today, 201)


@bp.route("/current", methods=["PATCH"])
@handle_record_errors
def update_pregnancy():
    data = get_json_body()
    patient_key = get_patient_key(data)
    today = get_today()
    fields = {k: v for k, v in data.items() if k != "patient_key"}
    service = get_service()
    service.update_pregnancy(patient_key, updated_by=get_current_actor(), **fields)
    return record_response(service, patient_key, today)


@bp.route("/current/scan", methods=["POST"])
@handle_record_errors
def update_scan_edd():
    data = get_json_body()
    patient_key = get_patient_key(data)
    today = get_today()
    service = get_service()
    service.update_scan_edd(
        patient_key,
        scan_date=data.get("scan_date"),
        scan_edd=data.get("scan_edd"),
        updated_by=get_current_actor(),
    )
    return record_response(service, patient_key, today)


@bp.route("/current/complete", methods=["POST"])
@handle_record_errors
def complete_pregnancy():
    data = get_json_body()
    patient_key = get_patient_key(data)
    today = get_today()
    service = get_service()
    service.complete_pregnancy(
        patient_key,
        outcome=data.get("outcome"),
        delivery_mode=data.get("delivery_mode"),
        birth_weight=data.get("birth_weight"),
        gender=data.get("gender"),
        remarks=data.get("remarks"),
        complications=data.get("complications"),
        updated_by=get_current_actor(),
    )
    return record_response(service, patient_key, today)


@bp.route("/current", methods=["DELETE"])
@handle_record_errors
def remove_pregnancy():
    patient_key = get_patient_key()
    if not get_service().remove_pregnancy(patient_key):
        raise PregnancyNotFoundError(f"No pregnancy record for patient {patient_key}")
    return jsonify({"ok": True, "patient_key": patient_key, "removed": True})


# =============================================================================
# Form preview
# =============================================================================

@bp.route("/dating/preview", methods=["POST"])
@handle_record_errors
def preview_dating():
    """
    Dating summary for unsaved form input.

    Same derivation as a stored record; nothing is written.
    """
    data = get_json_body()
    dates = PregnancyDates(
        lmp_date=parse_date_input(data.get("lmp_date"), "lmp_date"),
        scan_edd=parse_date_input(data.get("scan_edd"), "scan_edd"),
        corrected_edd=resolve_corrected_edd(data.get("has_corrected_edd"), data.get("corrected_edd")),
    )
    today = parse_date_input(data.get("today"), "today")
    return jsonify({"ok": True, "dating": build_dating_summary(dates, today)})
