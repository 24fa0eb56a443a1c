# soapnotes/api/triggers.py
"""
Trigger endpoints for the form responses sheet.

Endpoints:
- POST /triggers/form-submit: a form response was submitted
- POST /triggers/sheet-change: the sheet was edited
- POST /triggers/batch-run: process every row without an Upload Timestamp
- POST /triggers/rows/<row_number>: reprocess one sheet row

The sheet's installable triggers (or anything else) call these with an
optional ``X-Trigger-Secret`` header matching TRIGGER_SHARED_SECRET.
Handlers never raise: failures come back as JSON with status "failed".
"""
import hmac
import logging
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from soapnotes.models import FAILED

logger = logging.getLogger(__name__)

triggers_bp = Blueprint("triggers", __name__, url_prefix="/triggers")


def get_soap_note_service():
    """The app's SoapNoteService, built against Google on first use."""
    service = current_app.extensions.get("soap_notes")
    if service is None:
        from soapnotes.services.soap_notes import build_soap_note_service

        service = build_soap_note_service(current_app.soap_config)
        current_app.extensions["soap_notes"] = service
    return service


def require_trigger_secret(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        secret = current_app.soap_config.TRIGGER_SHARED_SECRET
        if secret:
            supplied = request.headers.get("X-Trigger-Secret", "")
            if not hmac.compare_digest(supplied, secret):
                logger.warning(f"🚫 Rejected trigger call to {request.path}")
                return jsonify({"error": "invalid trigger secret"}), 403
        return func(*args, **kwargs)

    return wrapper


def _outcome_response(outcome):
    status_code = 500 if outcome.status == FAILED else 200
    return jsonify(outcome.to_dict()), status_code


@triggers_bp.route("/form-submit", methods=["POST"])
@require_trigger_secret
def form_submit():
    """Process the newest row after a form submission."""
    try:
        outcome = get_soap_note_service().on_form_submit()
    except Exception as e:
        logger.error(f"Error in form-submit trigger: {e}")
        return jsonify({"status": FAILED, "reason": str(e)}), 500
    return _outcome_response(outcome)


@triggers_bp.route("/sheet-change", methods=["POST"])
@require_trigger_secret
def sheet_change():
    """Process the newest row after a manual sheet edit."""
    try:
        outcome = get_soap_note_service().on_sheet_change()
    except Exception as e:
        logger.error(f"Error in sheet-change trigger: {e}")
        return jsonify({"status": FAILED, "reason": str(e)}), 500
    return _outcome_response(outcome)


@triggers_bp.route("/batch-run", methods=["POST"])
@require_trigger_secret
def batch_run():
    try:
        result = get_soap_note_service().run_batch()
    except Exception as e:
        logger.error(f"Error in batch run: {e}")
        return jsonify({"status": FAILED, "reason": str(e)}), 500
    return jsonify(result.to_dict()), (500 if result.error else 200)


@triggers_bp.route("/rows/<int:row_number>", methods=["POST"])
@require_trigger_secret
def reprocess_row(row_number: int):
    try:
        outcome = get_soap_note_service().process_row(row_number)
    except Exception as e:
        logger.error(f"Error reprocessing row {row_number}: {e}")
        return jsonify({"status": FAILED, "row_number": row_number, "reason": str(e)}), 500
    return _outcome_response(outcome)
