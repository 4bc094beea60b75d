# Overview: Print job queue: enqueue by the web tier, atomic claim and result reporting by agents.

"""
Print job queue.

State machine: queued -> processing -> {success, failed}. Terminal states are
final; a failed print is retried by creating a new job.

Routing: a job carries the target device's identifier as routing_key. Claims
match on that identifier and the device's merchant, never on the secret, so a
secret rotation does not strand queued work.

CLAIM (compare-and-set): one conditional UPDATE flips every claimable row
for the device to processing and stamps it with a fresh claim_token; the
poller then reads back only rows carrying its token. Two concurrent polls
cannot both win a row. A row is claimable when queued, or when processing
with claimed_at older than PRINT_JOB_CLAIM_TIMEOUT_SECONDS (an agent that
crashed mid-print must not strand the job forever).

REPORT: only the device the job routes to may report it. Repeating the same
terminal outcome is accepted idempotently; contradicting it is a conflict.
completed_at is set on success only.
"""

from __future__ import annotations

import json
from datetime import timedelta

from flask import current_app
from sqlalchemy import and_, or_, update

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Order, PrintDevice, PrintJob, generate_id
from ..models.printing import (
    PRINT_JOB_FAILED,
    PRINT_JOB_PROCESSING,
    PRINT_JOB_QUEUED,
    PRINT_JOB_SUCCESS,
)
from ..time_utils import utcnow
from . import authorization_service, print_device_service, security_service
from .concurrency import compare_and_set, lock_for_update, run_with_retry
from .store_access_service import StoreContext


RECEIPT_JOB = "receipt"
REPORTABLE_STATUSES = (PRINT_JOB_SUCCESS, PRINT_JOB_FAILED)


def enqueue(
    *,
    merchant_id: str,
    store_id: str | None,
    routing_key: str,
    payload_json: str,
    job_type: str = RECEIPT_JOB,
    order_id: str | None = None,
) -> PrintJob:
    """Create a queued job. payload_json is stored as given."""
    if not routing_key:
        raise ValidationError("deviceIdentifier is required")
    job = PrintJob(
        merchant_id=merchant_id,
        store_id=store_id,
        order_id=order_id,
        routing_key=routing_key,
        job_type=job_type,
        payload=payload_json,
        status=PRINT_JOB_QUEUED,
        attempts=0,
    )
    db.session.add(job)
    db.session.commit()
    current_app.logger.info("Queued %s job %s for device %s", job_type, job.id, routing_key)
    return job


def create_receipt_job(context: StoreContext, order_id: str, device_identifier) -> PrintJob:
    """
    Queue a receipt for an order of the caller's merchant.

    The order must sit in a store the caller can access and the device must be
    paired with the caller's merchant. Both failures read as not found.
    """
    order = db.session.get(Order, order_id) if order_id else None
    if order is None or order.merchant_id != context.merchant_id:
        raise NotFoundError("Order not found")
    if not authorization_service.can_access_store(context.user, order.store_id, context.access_set):
        security_service.log_security_event(
            security_service.STORE_ACCESS_DENIED,
            False,
            merchant_id=context.merchant_id,
            store_id=order.store_id,
            user_id=context.user.id,
            reason="Receipt requested for an order in an inaccessible store",
        )
        raise NotFoundError("Order not found")

    if not isinstance(device_identifier, str) or not device_identifier.strip():
        raise ValidationError("deviceIdentifier is required")
    device = print_device_service.get_merchant_device(device_identifier.strip(), context.merchant_id)

    payload = json.dumps(order.to_receipt())
    return enqueue(
        merchant_id=context.merchant_id,
        store_id=order.store_id,
        routing_key=device.device_identifier,
        payload_json=payload,
        job_type=RECEIPT_JOB,
        order_id=order.id,
    )


def claim_jobs(device: PrintDevice) -> list[PrintJob]:
    """Atomically claim every claimable job routed to device, oldest first."""
    timeout = current_app.config.get("PRINT_JOB_CLAIM_TIMEOUT_SECONDS", 180)
    now = utcnow()
    stale_before = now - timedelta(seconds=timeout)
    claim_token = generate_id()

    statement = (
        update(PrintJob)
        .where(
            PrintJob.routing_key == device.device_identifier,
            PrintJob.merchant_id == device.merchant_id,
            or_(
                PrintJob.status == PRINT_JOB_QUEUED,
                and_(
                    PrintJob.status == PRINT_JOB_PROCESSING,
                    PrintJob.claimed_at < stale_before,
                ),
            ),
        )
        .values(
            status=PRINT_JOB_PROCESSING,
            claimed_at=now,
            claim_token=claim_token,
            attempts=PrintJob.attempts + 1,
        )
    )

    claimed = run_with_retry(lambda: compare_and_set(statement))
    if not claimed:
        return []

    jobs = (
        db.session.query(PrintJob)
        .filter_by(claim_token=claim_token)
        .order_by(PrintJob.created_at.asc(), PrintJob.id.asc())
        .all()
    )
    for job in jobs:
        if job.attempts > 1:
            current_app.logger.warning(
                "Reclaimed stale print job %s for device %s (attempt %d)",
                job.id,
                device.device_identifier,
                job.attempts,
            )
    current_app.logger.info("Device %s claimed %d print job(s)", device.device_identifier, len(jobs))
    return jobs


def _reject_report(device: PrintDevice, job_id: str, reason: str) -> None:
    security_service.log_security_event(
        security_service.PRINT_JOB_REPORT_REJECTED,
        False,
        merchant_id=device.merchant_id,
        device_identifier=device.device_identifier,
        reason=f"Job {job_id}: {reason}",
    )
    current_app.logger.warning("Rejected report for print job %s from device %s: %s", job_id, device.device_identifier, reason)


def report_result(device: PrintDevice, job_id: str, status, error: str | None = None) -> PrintJob:
    """Record the agent's outcome for a job routed to this device."""
    outcome = status.strip().lower() if isinstance(status, str) else ""
    if outcome not in REPORTABLE_STATUSES:
        raise ValidationError("status must be 'success' or 'failed'")

    def _report() -> PrintJob:
        job = lock_for_update(db.session.query(PrintJob).filter_by(id=job_id)).first()
        if job is None:
            raise NotFoundError("Print job not found")
        if job.merchant_id != device.merchant_id or job.routing_key != device.device_identifier:
            db.session.rollback()
            _reject_report(device, job_id, "job is routed to another device")
            raise NotFoundError("Print job not found")

        if job.is_terminal:
            if job.status == outcome:
                db.session.rollback()
                return job
            db.session.rollback()
            raise ConflictError(f"Print job already reported as {job.status}")

        job.status = outcome
        job.error = error
        if outcome == PRINT_JOB_SUCCESS:
            job.completed_at = utcnow()
        db.session.commit()
        return job

    job = run_with_retry(_report)
    if job.status == PRINT_JOB_FAILED:
        current_app.logger.warning("Print job %s failed on device %s: %s", job.id, device.device_identifier, job.error)
    else:
        current_app.logger.info("Print job %s completed on device %s", job.id, device.device_identifier)
    return job


def get_job(context: StoreContext, job_id: str) -> PrintJob:
    job = db.session.get(PrintJob, job_id) if job_id else None
    if job is None or job.merchant_id != context.merchant_id:
        raise NotFoundError("Print job not found")
    if job.store_id and not authorization_service.can_access_store(context.user, job.store_id, context.access_set):
        raise NotFoundError("Print job not found")
    return job


def list_jobs_for_order(context: StoreContext, order_id: str) -> list[PrintJob]:
    order = db.session.get(Order, order_id) if order_id else None
    if order is None or order.merchant_id != context.merchant_id:
        raise NotFoundError("Order not found")
    if not authorization_service.can_access_store(context.user, order.store_id, context.access_set):
        raise NotFoundError("Order not found")
    return (
        db.session.query(PrintJob)
        .filter_by(merchant_id=context.merchant_id, order_id=order.id)
        .order_by(PrintJob.created_at.desc(), PrintJob.id.desc())
        .all()
    )
