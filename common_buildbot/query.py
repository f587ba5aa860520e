# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Query-string serialization for the Buildbot REST API."""

from __future__ import annotations

import urllib.parse
from typing import Any, Mapping, Optional


def encode_query(filters: Optional[Mapping[str, Any]]) -> str:
    """Serialize a filter map as `key=value&key=value`.

    Keys mapped to None mean "use the server default" and are left out entirely.
    Pairs are emitted in the map's iteration order, values percent-encoded.

    Example:
        encode_query({"limit": 10, "order": "-changeid", "branch": None})
        -> "limit=10&order=-changeid"
    """
    pairs = []
    for key, value in (filters or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append(f"{key}={urllib.parse.quote(str(value), safe='')}")
    return "&".join(pairs)


def with_query(path: str, filters: Optional[Mapping[str, Any]]) -> str:
    q = encode_query(filters)
    return f"{path}?{q}" if q else path
