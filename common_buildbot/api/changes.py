# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Buildbot changes API.

Resources:
  GET /api/v2/changes?{limit,order,revision,branch}
  GET /api/v2/changes/{change_id}/builds
"""

from __future__ import annotations

from functools import partial
from typing import Any, List, Mapping, Optional, TYPE_CHECKING

from ..models import Build, Change
from . import decode_records

if TYPE_CHECKING:  # pragma: no cover
    from .. import BuildbotAPIClient

API_CALL_FORMAT_CHANGES = "GET /api/v2/changes?{q}"
API_CALL_FORMAT_CHANGE_BUILDS = "GET /api/v2/changes/{change_id}/builds"


def fetch_changes(api: "BuildbotAPIClient", filters: Optional[Mapping[str, Any]] = None) -> List[Change]:
    """List changes. `filters` keys: limit, order, revision, branch (None = server default)."""
    records = api.get_json("/changes", filters, envelope="changes", label="changes")
    return decode_records(records, Change.from_api, endpoint="/changes")


def fetch_builds_for_change(api: "BuildbotAPIClient", change_id: int) -> List[Build]:
    path = f"/changes/{int(change_id)}/builds"
    records = api.get_json(path, envelope="builds", label="change_builds")
    return decode_records(records, partial(Build.from_api, policy=api.status_policy), endpoint=path)
