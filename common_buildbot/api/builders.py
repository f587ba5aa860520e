# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Buildbot builders API.

Resources:
  GET /api/v2/builders
  GET /api/v2/builders/{builder_id}/builds?{limit,order,property}
"""

from __future__ import annotations

from functools import partial
from typing import Any, List, Mapping, Optional, TYPE_CHECKING

from ..models import Build, Builder
from . import decode_records

if TYPE_CHECKING:  # pragma: no cover
    from .. import BuildbotAPIClient

API_CALL_FORMAT_BUILDERS = "GET /api/v2/builders"
API_CALL_FORMAT_BUILDER_BUILDS = "GET /api/v2/builders/{builder_id}/builds?{q}"


def fetch_builders(api: "BuildbotAPIClient") -> List[Builder]:
    records = api.get_json("/builders", envelope="builders", label="builders")
    return decode_records(records, Builder.from_api, endpoint="/builders")


def fetch_builds_for_builder(
    api: "BuildbotAPIClient", builder_id: int, filters: Optional[Mapping[str, Any]] = None
) -> List[Build]:
    path = f"/builders/{int(builder_id)}/builds"
    records = api.get_json(path, filters, envelope="builds", label="builder_builds")
    return decode_records(records, partial(Build.from_api, policy=api.status_policy), endpoint=path)
