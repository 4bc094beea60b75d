# Overview: The paired agent's two periodic tasks: heartbeat and poll/print/report.

from __future__ import annotations

import logging
import threading

import httpx

from .client import BackendClient
from .printer import FilePrinter

logger = logging.getLogger("slipsync_agent.loop")


class AgentLoop:
    """
    Runs heartbeat and polling on independent daemon threads.

    Each cycle tolerates transient network failures: the error is logged and
    the cycle is skipped, the thread keeps running. A failure while printing
    a job is reported to the backend as "failed" with the error text.
    """

    def __init__(self, client: BackendClient, printer: FilePrinter):
        self.client = client
        self.printer = printer
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def heartbeat_once(self) -> bool:
        try:
            self.client.heartbeat()
        except httpx.HTTPError as exc:
            logger.warning("Heartbeat failed: %s", exc)
            return False
        logger.debug("Heartbeat sent")
        return True

    def process_job(self, job: dict) -> str:
        """Print one job and report its outcome; returns the reported status."""
        job_id = job.get("id")
        try:
            path = self.printer.print_job(job)
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            logger.error("Printing job %s failed: %s", job_id, error)
            self.client.report_result(job_id, "failed", error)
            return "failed"
        logger.info("Printed job %s to %s", job_id, path)
        self.client.report_result(job_id, "success")
        return "success"

    def poll_once(self) -> int:
        """Claim pending jobs and process them; returns the number handled."""
        try:
            jobs = self.client.fetch_pending_jobs()
        except httpx.HTTPError as exc:
            logger.warning("Polling failed: %s", exc)
            return 0

        handled = 0
        for job in jobs:
            try:
                self.process_job(job)
            except httpx.HTTPError as exc:
                # The job stays processing and is reclaimed after the server-side timeout
                logger.warning("Reporting job %s failed: %s", job.get("id"), exc)
                continue
            handled += 1
        if jobs:
            logger.info("Handled %d of %d job(s)", handled, len(jobs))
        return handled

    def _every(self, interval: float, action) -> None:
        while not self._stop.is_set():
            try:
                action()
            except Exception:
                logger.exception("Agent cycle %s failed", action.__name__)
            self._stop.wait(interval)

    def start(self, heartbeat_interval: float, poll_interval: float) -> None:
        self._stop.clear()
        self._threads = [
            threading.Thread(target=self._every, args=(heartbeat_interval, self.heartbeat_once),
                             name="slipsync-heartbeat", daemon=True),
            threading.Thread(target=self._every, args=(poll_interval, self.poll_once),
                             name="slipsync-poll", daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)

    def wait(self) -> None:
        """Block until stop() is called or the process is interrupted."""
        while not self._stop.wait(1.0):
            pass
