# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Typed Buildbot entities.

Raw API records are decoded exactly once, here, at the client boundary. Past
this point nothing does untyped dict lookups on upstream data.

Example raw records (GET /api/v2/...):

    changes: {"changeid": 812, "revision": "deadbeef...", "branch": "main",
              "author": "Jane <jane@example.com>", "when_timestamp": 1760000000,
              "comments": "Fix flaky test"}
    builds:  {"buildid": 4410, "builderid": 7, "number": 93, "complete": true,
              "state_string": "build successful", "results": 0,
              "properties": {"revision": ["deadbeef...", "Build"], "branch": ["main", "Build"]}}
    steps:   {"stepid": 90211, "number": 3, "name": "compile", "state_string": "compile (failure)"}
    logs:    {"logid": 5531, "name": "stdio"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from common_types import BuildStatus

from .exceptions import MissingFieldError
from .status import DEFAULT_POLICY, StatusPolicy, derive_build_status, derive_step_status


def _require(record: Mapping[str, Any], key: str, kind: str) -> Any:
    if not isinstance(record, Mapping):
        raise MissingFieldError(field=key, record=kind)
    value = record.get(key)
    if value is None:
        raise MissingFieldError(field=key, record=kind)
    return value


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _property(properties: Any, name: str) -> Optional[str]:
    """Buildbot properties are `{name: [value, source]}`."""
    if not isinstance(properties, Mapping):
        return None
    entry = properties.get(name)
    if isinstance(entry, (list, tuple)) and entry:
        entry = entry[0]
    if entry is None or entry == "":
        return None
    return str(entry)


@dataclass(frozen=True)
class Builder:
    id: int
    name: str

    @classmethod
    def from_api(cls, record: Mapping[str, Any]) -> "Builder":
        return cls(id=int(_require(record, "builderid", "builder")), name=str(_require(record, "name", "builder")))


UNKNOWN_BUILDER = Builder(id=-1, name="<unknown builder>")


@dataclass(frozen=True)
class FailedTest:
    test_name: str


@dataclass(frozen=True)
class Build:
    id: int
    builder_id: int
    state_string: str
    status: BuildStatus
    failed_tests: List[FailedTest] = field(default_factory=list)
    number: Optional[int] = None
    complete: Optional[bool] = None
    revision: Optional[str] = None
    branch: Optional[str] = None

    @classmethod
    def from_api(cls, record: Mapping[str, Any], policy: StatusPolicy = DEFAULT_POLICY) -> "Build":
        build_id = int(_require(record, "buildid", "build"))
        builder_id = int(_require(record, "builderid", "build"))
        state = str(record.get("state_string") or "")
        failed = [FailedTest(test_name=str(_require(t, "test_name", "failed test"))) for t in (record.get("failed_tests") or [])]
        props = record.get("properties")
        number = record.get("number")
        complete = record.get("complete")
        complete = bool(complete) if complete is not None else None
        return cls(
            id=build_id,
            builder_id=builder_id,
            state_string=state,
            status=derive_build_status(state, failed, policy, complete=complete),
            failed_tests=failed,
            number=int(number) if number is not None else None,
            complete=complete,
            revision=_property(props, "got_revision") or _property(props, "revision"),
            branch=_property(props, "branch"),
        )


@dataclass
class Change:
    """One revision event. `builds is None` until the change is resolved."""

    change_id: int
    revision: Optional[str]
    branch: Optional[str]
    author: Optional[str]
    timestamp: Optional[datetime]
    comments: Optional[str]
    builds: Optional[List[Build]] = None

    @property
    def is_resolved(self) -> bool:
        return self.builds is not None

    def attach_builds(self, builds: List[Build]) -> None:
        """Fill `builds` once; an already resolved change is left as it is."""
        if self.builds is None:
            self.builds = list(builds)

    @classmethod
    def from_api(cls, record: Mapping[str, Any]) -> "Change":
        when = record.get("when_timestamp") if isinstance(record, Mapping) else None
        return cls(
            change_id=int(_require(record, "changeid", "change")),
            revision=_opt_str(record.get("revision")),
            branch=_opt_str(record.get("branch")),
            author=_opt_str(record.get("author")),
            timestamp=datetime.fromtimestamp(int(when), tz=timezone.utc) if when is not None else None,
            comments=_opt_str(record.get("comments")),
        )


@dataclass(frozen=True)
class Step:
    id: int
    number: int
    name: str
    state_string: str
    status: BuildStatus

    @classmethod
    def from_api(cls, record: Mapping[str, Any], policy: StatusPolicy = DEFAULT_POLICY) -> "Step":
        state = str(record.get("state_string") or "") if isinstance(record, Mapping) else ""
        return cls(
            id=int(_require(record, "stepid", "step")),
            number=int(_require(record, "number", "step")),
            name=str(_require(record, "name", "step")),
            state_string=state,
            status=derive_step_status(state, policy),
        )


@dataclass(frozen=True)
class Log:
    id: int
    name: str

    @classmethod
    def from_api(cls, record: Mapping[str, Any]) -> "Log":
        return cls(id=int(_require(record, "logid", "log")), name=str(_require(record, "name", "log")))


@dataclass(frozen=True)
class RevisionInfo:
    revision: str
    author: Optional[str] = None
    created_at: Optional[datetime] = None
    comments: Optional[str] = None

    @classmethod
    def from_change(cls, change: Change) -> "RevisionInfo":
        return cls(revision=change.revision or "", author=change.author, created_at=change.timestamp, comments=change.comments)


@dataclass(frozen=True)
class BuildStats:
    success_count: int = 0
    failure_count: int = 0
    pending_count: int = 0
    unknown_count: int = 0

    @classmethod
    def from_builds(cls, builds: List[Build]) -> "BuildStats":
        counts: Dict[BuildStatus, int] = {s: 0 for s in BuildStatus}
        for b in builds:
            counts[b.status] += 1
        return cls(
            success_count=counts[BuildStatus.SUCCESS],
            failure_count=counts[BuildStatus.FAILURE],
            pending_count=counts[BuildStatus.PENDING],
            unknown_count=counts[BuildStatus.UNKNOWN],
        )


@dataclass(frozen=True)
class ChangeInfo:
    """Builds of one revision on one branch."""

    branch: Optional[str]
    build_stats: BuildStats
    builds: List[Build]
