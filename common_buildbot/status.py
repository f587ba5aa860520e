# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Derived status for builds and steps.

Buildbot reports progress as free text (`state_string`, e.g. "building",
"failed test (failure)", "build successful"). We map that text to a
`BuildStatus` through an ordered keyword table: the first rule with a
case-insensitive substring hit wins, and text that matches nothing is UNKNOWN.

The table is heuristic and depends on how the upstream master words its state
strings, so it is configurable (see `StatusPolicy.from_config`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple

from common_types import BuildStatus

from .exceptions import ConfigError

DEFAULT_RULES: Tuple[Tuple[BuildStatus, Tuple[str, ...]], ...] = (
    (BuildStatus.PENDING, ("running", "pending", "building", "starting", "waiting", "preparing")),
    (BuildStatus.FAILURE, ("fail", "unsuccessful", "exception", "cancelled", "interrupted")),
    (BuildStatus.SUCCESS, ("successful", "success", "finished", "done", "passed")),
)


@dataclass(frozen=True)
class StatusPolicy:
    rules: Tuple[Tuple[BuildStatus, Tuple[str, ...]], ...] = DEFAULT_RULES

    @classmethod
    def from_config(cls, raw: Optional[Mapping[str, Any]]) -> "StatusPolicy":
        """Build a policy from a `{status: [keywords...]}` mapping.

        Mapping order is rule order. An empty/None mapping gives the default table.
        """
        if not raw:
            return cls()
        rules = []
        for name, keywords in raw.items():
            try:
                status = BuildStatus(str(name).strip().lower())
            except ValueError:
                raise ConfigError(f"status_policy: unknown status '{name}'")
            if status is BuildStatus.UNKNOWN:
                raise ConfigError("status_policy: 'unknown' is the fallback and takes no keywords")
            if isinstance(keywords, str) or not isinstance(keywords, Sequence):
                raise ConfigError(f"status_policy: keywords for '{name}' must be a list")
            rules.append((status, tuple(str(k).lower() for k in keywords if str(k).strip())))
        return cls(rules=tuple(rules))

    def classify(self, text: Optional[str]) -> BuildStatus:
        s = str(text or "").lower()
        if not s:
            return BuildStatus.UNKNOWN
        for status, keywords in self.rules:
            if any(k in s for k in keywords):
                return status
        return BuildStatus.UNKNOWN


DEFAULT_POLICY = StatusPolicy()


def derive_build_status(state_string: Optional[str], failed_tests: Sequence[Any], policy: StatusPolicy = DEFAULT_POLICY,
                        complete: Optional[bool] = None) -> BuildStatus:
    # Recorded test failures win over the text: a build mid-retry can still say "pending".
    if failed_tests:
        return BuildStatus.FAILURE
    status = policy.classify(state_string)
    # A build the master reports as still running is pending until its text says otherwise.
    if status is BuildStatus.UNKNOWN and complete is False:
        return BuildStatus.PENDING
    return status


def derive_step_status(state_string: Optional[str], policy: StatusPolicy = DEFAULT_POLICY) -> BuildStatus:
    return policy.classify(state_string)
