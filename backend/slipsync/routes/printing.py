# Overview: Flask API routes for print device pairing and the print job queue.

"""
Printing API.

User-token endpoints (web tier): register, status, rotate-secret, create job,
job lookups.
Device-secret endpoints (print agent, X-Device-Secret): heartbeat, pending,
response.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_admin, require_auth, require_device, require_permission
from ..errors import SlipSyncError, error_response
from ..permissions import PROCESS_SALES
from ..services import print_device_service, print_job_service


printing_bp = Blueprint("printing", __name__, url_prefix="/api")


# --- Devices ---

@printing_bp.post("/print-devices/register")
@require_auth
def register_device_route():
    """
    Pair a print agent with the caller's merchant.

    Body: deviceIdentifier, name?
    Returns the long-lived device secret; re-pairing returns the same one.
    """
    data = request.get_json(silent=True) or {}
    try:
        device = print_device_service.register_device(
            g.current_user,
            data.get("deviceIdentifier"),
            data.get("name"),
        )
        return jsonify({
            "status": "registered",
            "deviceIdentifier": device.device_identifier,
            "deviceSecret": device.api_secret,
            "merchantId": device.merchant_id,
        }), 200
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to register print device")
        return jsonify({"error": "Internal server error"}), 500


@printing_bp.post("/print-devices/heartbeat")
@require_device
def heartbeat_route():
    data = request.get_json(silent=True) or {}
    try:
        device = print_device_service.heartbeat(
            g.print_device,
            data.get("deviceIdentifier"),
            data.get("name"),
        )
        return jsonify(device.to_dict()), 200
    except SlipSyncError as exc:
        return error_response(exc)


@printing_bp.get("/print-devices/status")
@require_auth
def device_status_route():
    """Devices of the caller's merchant seen within the liveness window."""
    devices = print_device_service.list_online(g.merchant_id)
    return jsonify({
        "devices": [
            {
                "name": device.name,
                "deviceIdentifier": device.device_identifier,
                "lastSeen": device.to_dict()["lastSeen"],
            }
            for device in devices
        ]
    }), 200


@printing_bp.post("/print-devices/<device_identifier>/rotate-secret")
@require_auth
@require_admin
def rotate_secret_route(device_identifier: str):
    try:
        device = print_device_service.rotate_secret(g.merchant_id, device_identifier)
        return jsonify({
            "deviceIdentifier": device.device_identifier,
            "deviceSecret": device.api_secret,
        }), 200
    except SlipSyncError as exc:
        return error_response(exc)


# --- Jobs (agent) ---

@printing_bp.get("/print-jobs/pending")
@require_device
def pending_jobs_route():
    """Claim and return the jobs queued for the calling device, oldest first."""
    try:
        jobs = print_job_service.claim_jobs(g.print_device)
        return jsonify([job.to_dict() for job in jobs]), 200
    except Exception:
        current_app.logger.exception("Failed to claim print jobs")
        return jsonify({"error": "Internal server error"}), 500


@printing_bp.post("/print-jobs/<job_id>/response")
@require_device
def job_response_route(job_id: str):
    """Body: status ("success" or "failed"), error?"""
    data = request.get_json(silent=True) or {}
    try:
        job = print_job_service.report_result(
            g.print_device,
            job_id,
            data.get("status"),
            data.get("error"),
        )
        return jsonify(job.to_dict(include_payload=False)), 200
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to record print job response")
        return jsonify({"error": "Internal server error"}), 500


# --- Jobs (web tier) ---

@printing_bp.post("/print-jobs/<order_id>")
@require_auth
@require_permission(PROCESS_SALES)
def create_print_job_route(order_id: str):
    """Queue a receipt for an order. Body: deviceIdentifier"""
    data = request.get_json(silent=True) or {}
    try:
        job = print_job_service.create_receipt_job(g.store_context, order_id, data.get("deviceIdentifier"))
        return jsonify(job.to_dict()), 201
    except SlipSyncError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to queue print job")
        return jsonify({"error": "Internal server error"}), 500


@printing_bp.get("/print-jobs/<job_id>")
@require_auth
def get_print_job_route(job_id: str):
    try:
        job = print_job_service.get_job(g.store_context, job_id)
        return jsonify(job.to_dict(include_payload=False)), 200
    except SlipSyncError as exc:
        return error_response(exc)


@printing_bp.get("/orders/<order_id>/print-jobs")
@require_auth
def list_order_print_jobs_route(order_id: str):
    try:
        jobs = print_job_service.list_jobs_for_order(g.store_context, order_id)
        return jsonify([job.to_dict(include_payload=False) for job in jobs]), 200
    except SlipSyncError as exc:
        return error_response(exc)
