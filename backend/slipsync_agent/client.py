# Overview: HTTP client for the backend's print device and print job endpoints.

from __future__ import annotations

import httpx

from .config import AgentConfig


DEVICE_SECRET_HEADER = "X-Device-Secret"


class PairingError(Exception):
    """Raised when the backend refuses to pair the device."""


class BackendClient:
    """
    Thin wrapper over httpx.Client.

    Network failures and non-2xx responses surface as httpx.HTTPError
    subclasses; the agent loop decides what to swallow. transport is
    injectable so tests can use httpx.MockTransport.
    """

    def __init__(self, config: AgentConfig, *, transport: httpx.BaseTransport | None = None):
        self.config = config
        self._http = httpx.Client(
            base_url=config.backend_url.rstrip("/") + "/",
            timeout=config.request_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _device_headers(self) -> dict:
        return {DEVICE_SECRET_HEADER: self.config.device_secret}

    def register(self, user_token: str, device_name: str) -> str:
        """Exchange a user token for the long-lived device secret."""
        response = self._http.post(
            "print-devices/register",
            json={"deviceIdentifier": self.config.device_id, "name": device_name},
            headers={"Authorization": f"Bearer {user_token}"},
        )
        if response.status_code != 200:
            try:
                reason = response.json().get("error")
            except ValueError:
                reason = None
            raise PairingError(reason or f"Pairing failed with HTTP {response.status_code}")
        secret = response.json().get("deviceSecret")
        if not secret:
            raise PairingError("Backend did not return a device secret")
        return secret

    def heartbeat(self) -> dict:
        response = self._http.post(
            "print-devices/heartbeat",
            json={"deviceIdentifier": self.config.device_id, "name": self.config.device_name or None},
            headers=self._device_headers(),
        )
        response.raise_for_status()
        return response.json()

    def fetch_pending_jobs(self) -> list[dict]:
        response = self._http.get("print-jobs/pending", headers=self._device_headers())
        response.raise_for_status()
        return response.json() or []

    def report_result(self, job_id: str, status: str, error: str | None = None) -> dict:
        body = {"status": status}
        if error is not None:
            body["error"] = error
        response = self._http.post(f"print-jobs/{job_id}/response", json=body, headers=self._device_headers())
        response.raise_for_status()
        return response.json()
