# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Resource-specific Buildbot API wrappers.

Each module in this package owns:
- the API calls for one resource family (via BuildbotAPIClient transport)
- decoding of the raw records into `common_buildbot.models` entities
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, TypeVar

from ..exceptions import MissingFieldError

T = TypeVar("T")


def decode_records(records: Iterable[Any], decoder: Callable[[Any], T], *, endpoint: str) -> List[T]:
    """Decode every record, tagging schema-drift errors with the endpoint they came from."""
    out: List[T] = []
    for rec in records:
        try:
            out.append(decoder(rec))
        except MissingFieldError as e:
            e.endpoint = endpoint
            raise
    return out
