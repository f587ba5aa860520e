# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Shared pytest fixtures: an in-memory Buildbot master standing in for BuildbotAPIClient."""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Mapping, Optional

import pytest

from common_buildbot.config import BuildbotConfig
from common_buildbot.models import Build, Builder, Change, Log, Step
from common_buildbot.session import Session


def make_change(change_id: int, revision: Optional[str], branch: str = "main", author: str = "Jane Doe") -> Change:
    return Change.from_api(
        {
            "changeid": change_id,
            "revision": revision,
            "branch": branch,
            "author": author,
            "when_timestamp": 1760000000 + change_id,
            "comments": f"change {change_id}\n\nlonger description",
        }
    )


def make_build(build_id: int, builder_id: int = 1, state: str = "build successful",
               failed_tests: Optional[List[str]] = None, revision: Optional[str] = None) -> Build:
    record: Dict[str, Any] = {
        "buildid": build_id,
        "builderid": builder_id,
        "number": build_id % 1000,
        "state_string": state,
        "complete": True,
    }
    if failed_tests:
        record["failed_tests"] = [{"test_name": t} for t in failed_tests]
    if revision:
        record["properties"] = {"revision": [revision, "Build"], "branch": ["main", "Build"]}
    return Build.from_api(record)


class FakeBuildbot:
    """Records every call; `fail_with` makes the next calls raise."""

    def __init__(self):
        self.changes: List[Change] = []
        self.change_builds: Dict[int, List[Build]] = {}
        self.builders: List[Builder] = []
        self.builder_builds: Dict[int, List[Build]] = {}
        self.builds: List[Build] = []
        self.steps: Dict[int, List[Step]] = {}
        self.logs: Dict[int, List[Log]] = {}
        self.raw: Dict[int, str] = {}
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    def _call(self, *call: Any) -> None:
        self.calls.append(call)
        if self.fail_with is not None:
            raise self.fail_with

    def calls_named(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def fetch_changes(self, filters: Optional[Mapping[str, Any]] = None) -> List[Change]:
        f = dict(filters or {})
        self._call("changes", f)
        out = sorted(self.changes, key=lambda c: -c.change_id)
        if f.get("revision") is not None:
            out = [c for c in out if c.revision == f["revision"]]
        if f.get("branch") is not None:
            out = [c for c in out if c.branch == f["branch"]]
        if f.get("limit") is not None:
            out = out[: int(f["limit"])]
        # Fresh, unresolved objects on every fetch.
        return [dataclasses.replace(c, builds=None) for c in out]

    def fetch_builds_for_change(self, change_id: int) -> List[Build]:
        self._call("change_builds", change_id)
        return list(self.change_builds.get(change_id, []))

    def fetch_builders(self) -> List[Builder]:
        self._call("builders")
        return list(self.builders)

    def fetch_builds_for_builder(self, builder_id: int, filters: Optional[Mapping[str, Any]] = None) -> List[Build]:
        self._call("builder_builds", builder_id, dict(filters or {}))
        return list(self.builder_builds.get(builder_id, []))

    def fetch_builds(self, filters: Optional[Mapping[str, Any]] = None) -> List[Build]:
        f = dict(filters or {})
        self._call("builds", f)
        return [b for b in self.builds if f.get("buildid") is None or b.id == f["buildid"]]

    def fetch_steps(self, build_id: int) -> List[Step]:
        self._call("steps", build_id)
        return list(self.steps.get(build_id, []))

    def fetch_logs(self, step_id: int) -> List[Log]:
        self._call("logs", step_id)
        return list(self.logs.get(step_id, []))

    def fetch_log_raw(self, log_id: int) -> str:
        self._call("log_raw", log_id)
        return self.raw.get(log_id, "")

    def build_web_url(self, build: Build) -> str:
        return f"http://bb.test/#/builders/{build.builder_id}/builds/{build.number}"


@pytest.fixture
def fake() -> FakeBuildbot:
    return FakeBuildbot()


@pytest.fixture
def make_session(fake):
    def _make(**config: Any) -> Session:
        cfg = BuildbotConfig(host="http://bb.test", **config)
        return Session(cfg, client=fake)  # type: ignore[arg-type]

    return _make
