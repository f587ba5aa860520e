# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Builder id/name lookup table.

Populated once by the caller (see `Session.load_builders`), read-only after
that. A miss is not an error: it resolves to `UNKNOWN_BUILDER` and never
triggers a fetch.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from .models import UNKNOWN_BUILDER, Builder

_logger = logging.getLogger(__name__)


class BuilderCache:
    def __init__(self) -> None:
        self._by_id: Dict[int, Builder] = {}
        self._by_name: Dict[str, Builder] = {}
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._by_id)

    def load(self, builders: Iterable[Builder]) -> None:
        """Populate the cache from one snapshot. Duplicate ids in the snapshot are rejected."""
        if self._loaded:
            raise RuntimeError("BuilderCache is already populated")
        by_id: Dict[int, Builder] = {}
        by_name: Dict[str, Builder] = {}
        for b in builders:
            if b.id in by_id:
                raise ValueError(f"duplicate builder id {b.id} ({by_id[b.id].name!r} and {b.name!r})")
            by_id[b.id] = b
            # First one wins if two builders share a display name.
            by_name.setdefault(b.name, b)
        self._by_id = by_id
        self._by_name = by_name
        self._loaded = True
        _logger.debug("builder cache loaded with %d builders", len(by_id))

    def by_id(self, builder_id: Optional[int]) -> Builder:
        if builder_id is None:
            return UNKNOWN_BUILDER
        return self._by_id.get(int(builder_id), UNKNOWN_BUILDER)

    def by_name(self, name: Optional[str]) -> Builder:
        return self._by_name.get(str(name or ""), UNKNOWN_BUILDER)
