# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Buildbot builds / steps / logs API.

Resources:
  GET /api/v2/builds?{buildid,property}
  GET /api/v2/builds/{build_id}/steps
  GET /api/v2/steps/{step_id}/logs
  GET /api/v2/logs/{log_id}/raw      (plain text, not JSON)
"""

from __future__ import annotations

from functools import partial
from typing import Any, List, Mapping, Optional, TYPE_CHECKING

from ..models import Build, Log, Step
from . import decode_records

if TYPE_CHECKING:  # pragma: no cover
    from .. import BuildbotAPIClient

API_CALL_FORMAT_BUILDS = "GET /api/v2/builds?{q}"
API_CALL_FORMAT_STEPS = "GET /api/v2/builds/{build_id}/steps"
API_CALL_FORMAT_LOGS = "GET /api/v2/steps/{step_id}/logs"
API_CALL_FORMAT_LOG_RAW = "GET /api/v2/logs/{log_id}/raw"


def fetch_builds(api: "BuildbotAPIClient", filters: Optional[Mapping[str, Any]] = None) -> List[Build]:
    records = api.get_json("/builds", filters, envelope="builds", label="builds")
    return decode_records(records, partial(Build.from_api, policy=api.status_policy), endpoint="/builds")


def fetch_steps(api: "BuildbotAPIClient", build_id: int) -> List[Step]:
    path = f"/builds/{int(build_id)}/steps"
    records = api.get_json(path, envelope="steps", label="steps")
    return decode_records(records, partial(Step.from_api, policy=api.status_policy), endpoint=path)


def fetch_logs(api: "BuildbotAPIClient", step_id: int) -> List[Log]:
    path = f"/steps/{int(step_id)}/logs"
    records = api.get_json(path, envelope="logs", label="logs")
    return decode_records(records, Log.from_api, endpoint=path)


def fetch_log_raw(api: "BuildbotAPIClient", log_id: int) -> str:
    return api.get_text(f"/logs/{int(log_id)}/raw", label="log_raw")
