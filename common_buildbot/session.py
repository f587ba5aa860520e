# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Session context threaded through the resolver and the navigator."""

from __future__ import annotations

import logging
from typing import Optional

from . import BuildbotAPIClient
from .builder_cache import BuilderCache
from .config import BuildbotConfig

_logger = logging.getLogger(__name__)


class Session:
    """Config + API client + builder cache for one browsing session.

    The builder cache starts empty; call `load_builders()` once before
    anything needs builder names, otherwise every name resolves as unknown.
    """

    def __init__(self, config: BuildbotConfig, client: Optional[BuildbotAPIClient] = None):
        self.config = config
        self.client = client if client is not None else BuildbotAPIClient(
            config.host, timeout=config.timeout, status_policy=config.status_policy
        )
        self.builders = BuilderCache()

    def load_builders(self) -> int:
        builders = self.client.fetch_builders()
        self.builders.load(builders)
        _logger.info("loaded %d builders from %s", len(builders), self.config.host)
        return len(builders)
