# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Buildbot REST API client and history browser core.

Structure:
- `common_buildbot/` defines the API client + REST stats helpers
- `common_buildbot/api/*.py` contains the per-resource fetch + decode logic
- `resolver.py` / `navigation.py` build the entity graph and drill-down views on top
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

import requests

from .exceptions import (
    BuildbotAPIError,
    ConfigError,
    HTTPError,
    MissingFieldError,
    NetworkError,
    ParseError,
)
from .models import Build, Builder, Change, Log, Step
from .query import with_query
from .status import DEFAULT_POLICY, StatusPolicy

from .api.builders import fetch_builders, fetch_builds_for_builder
from .api.builds import fetch_builds, fetch_log_raw, fetch_logs, fetch_steps
from .api.changes import fetch_builds_for_change, fetch_changes

_logger = logging.getLogger(__name__)

API_PREFIX = "/api/v2"


class BuildbotAPIClient:
    """Buildbot REST API v2 client (read-only; no retries, no caching).

    Example:
        client = BuildbotAPIClient("https://buildbot.example.com")
        changes = client.fetch_changes({"limit": 50, "order": "-changeid"})
    """

    def __init__(
        self,
        host: str,
        *,
        timeout: int = 10,
        status_policy: StatusPolicy = DEFAULT_POLICY,
        session: Optional[requests.Session] = None,
    ):
        self.host = str(host or "").rstrip("/")
        self.base_url = f"{self.host}{API_PREFIX}"
        self.timeout = int(timeout)
        self.status_policy = status_policy
        self.session = session if session is not None else requests.Session()

        # Per-run REST stats (label-based).
        self._rest_calls_total: int = 0
        self._rest_calls_by_label: Dict[str, int] = {}
        self._rest_success_total: int = 0
        self._rest_errors_total: int = 0
        self._rest_time_total_s: float = 0.0
        self._rest_time_by_label_s: Dict[str, float] = {}
        self._rest_errors_by_status: Dict[int, int] = {}

    def _rest_record(self, *, label: str, status_code: Optional[int], dt_s: float) -> None:
        lbl = str(label or "").strip() or "unknown"
        dt = max(0.0, float(dt_s or 0.0))
        self._rest_calls_total += 1
        self._rest_calls_by_label[lbl] = self._rest_calls_by_label.get(lbl, 0) + 1
        self._rest_time_total_s += dt
        self._rest_time_by_label_s[lbl] = self._rest_time_by_label_s.get(lbl, 0.0) + dt
        if status_code is None:
            # Transport failure: no status to bucket.
            self._rest_errors_total += 1
            return
        if 200 <= status_code < 300:
            self._rest_success_total += 1
        else:
            self._rest_errors_total += 1
            self._rest_errors_by_status[status_code] = self._rest_errors_by_status.get(status_code, 0) + 1

    def _request(self, endpoint: str, *, label: str) -> requests.Response:
        """GET `{host}/api/v2{endpoint}` and return the 2xx response, or raise."""
        url = f"{self.base_url}{endpoint}"
        t0 = time.monotonic()
        status_code: Optional[int] = None
        try:
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.exceptions.RequestException as e:  # connection refused, timeout, bad URL
                raise NetworkError(endpoint=endpoint, message=f"Buildbot API request failed for {endpoint}: {e}")
            status_code = int(response.status_code)
            if not 200 <= status_code < 300:
                raise HTTPError(
                    status_code=status_code,
                    endpoint=endpoint,
                    message=f"Buildbot API returned {status_code} for {endpoint}",
                )
            return response
        finally:
            dt = time.monotonic() - t0
            _logger.debug("GET %s -> %s (%.2fs)", url, status_code if status_code is not None else "error", dt)
            self._rest_record(label=label, status_code=status_code, dt_s=dt)

    def get_json(self, path: str, filters: Optional[Mapping[str, Any]] = None, *, envelope: str, label: str) -> List[Any]:
        """GET a JSON collection and return the record list under `envelope`.

        Buildbot wraps every collection as `{"<envelope>": [...], "meta": {"total": N}}`.
        """
        endpoint = with_query(path, filters)
        response = self._request(endpoint, label=label)
        try:
            body = response.json()
        except ValueError as e:
            raise ParseError(endpoint=endpoint, message=f"Buildbot API returned malformed JSON for {endpoint}: {e}")
        records = body.get(envelope) if isinstance(body, dict) else None
        if not isinstance(records, list):
            raise ParseError(endpoint=endpoint, message=f"Buildbot API response for {endpoint} has no '{envelope}' list")
        return records

    def get_text(self, path: str, *, label: str) -> str:
        return self._request(path, label=label).text

    def get_rest_call_stats(self) -> Dict[str, Any]:
        """Return REST call stats for the current process/run."""
        return {
            "total": int(self._rest_calls_total),
            "success_total": int(self._rest_success_total),
            "error_total": int(self._rest_errors_total),
            "time_total_s": float(self._rest_time_total_s),
            "by_label": dict(sorted(self._rest_calls_by_label.items(), key=lambda kv: (-kv[1], kv[0]))),
            "time_by_label_s": dict(sorted(self._rest_time_by_label_s.items(), key=lambda kv: (-kv[1], kv[0]))),
            "errors_by_status": dict(sorted(self._rest_errors_by_status.items(), key=lambda kv: (-kv[1], kv[0]))),
        }

    def build_web_url(self, build: Build) -> str:
        """Link to the build in the Buildbot web UI."""
        number = build.number if build.number is not None else build.id
        return f"{self.host}/#/builders/{build.builder_id}/builds/{number}"

    # -----------------------------------------------------------------------------
    # Resources (delegated to common_buildbot/api/*.py)
    # -----------------------------------------------------------------------------

    def fetch_changes(self, filters: Optional[Mapping[str, Any]] = None) -> List[Change]:
        return fetch_changes(self, filters)

    def fetch_builds_for_change(self, change_id: int) -> List[Build]:
        return fetch_builds_for_change(self, change_id)

    def fetch_builders(self) -> List[Builder]:
        return fetch_builders(self)

    def fetch_builds_for_builder(self, builder_id: int, filters: Optional[Mapping[str, Any]] = None) -> List[Build]:
        return fetch_builds_for_builder(self, builder_id, filters)

    def fetch_builds(self, filters: Optional[Mapping[str, Any]] = None) -> List[Build]:
        return fetch_builds(self, filters)

    def fetch_steps(self, build_id: int) -> List[Step]:
        return fetch_steps(self, build_id)

    def fetch_logs(self, step_id: int) -> List[Log]:
        return fetch_logs(self, step_id)

    def fetch_log_raw(self, log_id: int) -> str:
        return fetch_log_raw(self, log_id)


__all__ = [
    "BuildbotAPIClient",
    "BuildbotAPIError",
    "ConfigError",
    "HTTPError",
    "MissingFieldError",
    "NetworkError",
    "ParseError",
]
