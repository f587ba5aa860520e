# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Plain-text rendering of resolved views.

A rendered view is a list of `RenderUnit` lines. Lines that stand for a
navigable entity carry an `EntityTag(kind, payload)`; the navigator drills
down from the tag alone, never by parsing the text.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from common_types import BuildStatus, ViewKind

from .builder_cache import BuilderCache
from .models import Build, BuildStats, RevisionInfo
from .resolver import BranchResult, BuildResult, LogResult, RevisionResult, StepResult

STATUS_SYMBOLS: Dict[BuildStatus, str] = {
    BuildStatus.SUCCESS: "✓",
    BuildStatus.FAILURE: "✗",
    BuildStatus.PENDING: "⏳",
    BuildStatus.UNKNOWN: "?",
}

SHORT_SHA_LEN = 12


@dataclass(frozen=True)
class EntityTag:
    kind: ViewKind
    payload: Any


@dataclass(frozen=True)
class RenderUnit:
    text: str
    tag: Optional[EntityTag] = None


def _fmt_time(ts: Optional[datetime]) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S %Z").strip() if ts else "-"


def _first_line(text: Optional[str]) -> str:
    lines = str(text or "").strip().splitlines()
    return lines[0] if lines else ""


def format_stats(stats: BuildStats) -> str:
    s = f"{stats.success_count} success, {stats.failure_count} failure, {stats.pending_count} pending"
    if stats.unknown_count:
        s += f", {stats.unknown_count} unknown"
    return s


class TextRenderer:
    """Turns resolver results into tagged text lines, one handler per view kind."""

    def __init__(self, builders: BuilderCache):
        self.builders = builders
        self._handlers: Dict[ViewKind, Callable[[Any], List[RenderUnit]]] = {
            ViewKind.BRANCH: self.render_branch,
            ViewKind.REVISION: self.render_revision,
            ViewKind.BUILD: self.render_build,
            ViewKind.STEP: self.render_step,
            ViewKind.LOG: self.render_log,
        }

    def render(self, kind: ViewKind, result: Any) -> List[RenderUnit]:
        return self._handlers[kind](result)

    def _build_line(self, build: Build, indent: str = "    ") -> RenderUnit:
        name = self.builders.by_id(build.builder_id).name
        number = f"#{build.number}" if build.number is not None else f"id {build.id}"
        text = f"{indent}{STATUS_SYMBOLS[build.status]} {name} {number}  {build.state_string}".rstrip()
        return RenderUnit(text, EntityTag(ViewKind.BUILD, build))

    def _failed_test_lines(self, build: Build, indent: str = "        ") -> List[RenderUnit]:
        return [RenderUnit(f"{indent}failed: {t.test_name}") for t in build.failed_tests]

    def _revision_header(self, info: RevisionInfo) -> List[RenderUnit]:
        units = [
            RenderUnit(f"Revision: {info.revision}"),
            RenderUnit(f"Author:   {info.author or '-'}"),
            RenderUnit(f"Date:     {_fmt_time(info.created_at)}"),
        ]
        if info.comments:
            units.append(RenderUnit(""))
            units.extend(RenderUnit(f"    {line}") for line in info.comments.rstrip().splitlines())
        return units

    def render_branch(self, result: BranchResult) -> List[RenderUnit]:
        units = [
            RenderUnit(f"Branch: {result.branch}  ({len(result.changes)} changes; {format_stats(result.build_stats)})"),
            RenderUnit(""),
        ]
        if not result.changes:
            units.append(RenderUnit("No recent changes found for this branch."))
        for change in result.changes:
            rev = change.revision
            line = f"{(rev or '-')[:SHORT_SHA_LEN]}  {_fmt_time(change.timestamp)}  {change.author or '-'}  {_first_line(change.comments)}"
            # A change without a revision has no revision view to open.
            units.append(RenderUnit(line.rstrip(), EntityTag(ViewKind.REVISION, rev) if rev else None))
            for build in change.builds or []:
                units.append(self._build_line(build))
        return units

    def render_revision(self, result: RevisionResult) -> List[RenderUnit]:
        units = self._revision_header(result.info)
        units.append(RenderUnit(""))
        if not result.change_infos:
            units.append(RenderUnit("No changes found for this revision (only the most recent changes are searched)."))
        for ci in result.change_infos:
            units.append(RenderUnit(f"Branch {ci.branch or '-'}: {format_stats(ci.build_stats)}"))
            for build in ci.builds:
                units.append(self._build_line(build))
                units.extend(self._failed_test_lines(build))
        return units

    def render_build(self, result: BuildResult) -> List[RenderUnit]:
        build = result.build
        units: List[RenderUnit] = []
        if result.revision_info is not None:
            units.extend(self._revision_header(result.revision_info))
            units.append(RenderUnit(""))
        number = f"#{build.number}" if build.number is not None else f"id {build.id}"
        units.append(RenderUnit(f"Build {number} on {result.builder.name}: {STATUS_SYMBOLS[build.status]} {build.state_string}".rstrip()))
        units.append(RenderUnit(f"URL: {result.web_url}"))
        if build.failed_tests:
            units.append(RenderUnit(f"Failed tests ({len(build.failed_tests)}):"))
            units.extend(self._failed_test_lines(build, indent="    "))
        units.append(RenderUnit(""))
        for step in result.steps:
            units.append(
                RenderUnit(f"    {STATUS_SYMBOLS[step.status]} {step.number:>3} {step.name}  {step.state_string}".rstrip(), EntityTag(ViewKind.STEP, step))
            )
        return units

    def render_step(self, result: StepResult) -> List[RenderUnit]:
        step = result.step
        units = []
        if result.build is not None:
            name = self.builders.by_id(result.build.builder_id).name
            number = f"#{result.build.number}" if result.build.number is not None else f"id {result.build.id}"
            units.append(RenderUnit(f"Build {number} on {name}"))
        units.append(RenderUnit(f"Step {step.number} {step.name}: {STATUS_SYMBOLS[step.status]} {step.state_string}".rstrip()))
        units.append(RenderUnit(""))
        if not result.logs:
            units.append(RenderUnit("(no logs)"))
        for log in result.logs:
            units.append(RenderUnit(f"    {log.name}", EntityTag(ViewKind.LOG, log)))
        return units

    def render_log(self, result: LogResult) -> List[RenderUnit]:
        header = f"Log {result.log.name}"
        if result.step is not None:
            header += f" of step {result.step.number} {result.step.name}"
        units = [RenderUnit(header), RenderUnit("")]
        units.extend(RenderUnit(line) for line in result.text.splitlines())
        return units
