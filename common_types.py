#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Common shared enums/types that must be used by both:
- `common_buildbot/` (API/data layer)
- `show_buildbot_history.py` and the text renderer

This module MUST NOT import `common_buildbot` to avoid cycles.
"""

from __future__ import annotations

from enum import Enum


class BuildStatus(str, Enum):
    """Canonical normalized status strings for builds and steps.

    UNKNOWN is what a state description maps to when no policy keyword matches;
    it is never a guess at success or failure.
    """

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    UNKNOWN = "unknown"


class ViewKind(str, Enum):
    """The five navigation levels, root first."""

    BRANCH = "branch"
    REVISION = "revision"
    BUILD = "build"
    STEP = "step"
    LOG = "log"
