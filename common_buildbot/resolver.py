# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Entity resolution: turn partially-populated API records into the browse graph.

Two strategies select the changes for a revision or branch:

- direct:   the server filters (`revision=` / `branch=` query parameter).
            Exact, but some masters are slow or ignore the parameter.
- indirect: fetch the newest `changes_fetch_limit` changes (order=-changeid)
            and keep exact matches client-side. Older matches outside that
            window are silently missed, so the result is a lower bound.

Both strategies keep only exact matches, so neither can return a change for
the wrong revision or branch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from .builder_cache import BuilderCache
from .exceptions import MissingFieldError
from .models import Build, Builder, BuildStats, Change, ChangeInfo, Log, RevisionInfo, Step
from .session import Session

_logger = logging.getLogger(__name__)

CHANGES_ORDER = "-changeid"
BUILDS_ORDER = "-number"
ALL_PROPERTIES = "*"


@dataclass(frozen=True)
class RevisionResult:
    info: RevisionInfo
    change_infos: List[ChangeInfo]


@dataclass(frozen=True)
class BranchResult:
    branch: str
    changes: List[Change]
    build_stats: BuildStats


@dataclass(frozen=True)
class BuildResult:
    build: Build
    builder: Builder
    revision_info: Optional[RevisionInfo]
    steps: List[Step]
    web_url: str


@dataclass(frozen=True)
class StepResult:
    build: Optional[Build]
    step: Step
    logs: List[Log]


@dataclass(frozen=True)
class LogResult:
    step: Optional[Step]
    log: Log
    text: str


class EntityResolver:
    def __init__(self, session: Session):
        self.session = session

    @property
    def builders(self) -> BuilderCache:
        return self.session.builders

    # -----------------------------------------------------------------------------
    # Changes
    # -----------------------------------------------------------------------------

    def resolve_change(self, change: Change) -> Change:
        """Attach builds to a change that has none yet. Resolved changes are untouched."""
        if not change.is_resolved:
            builds = self.session.client.fetch_builds_for_change(change.change_id)
            # Builds listed under a change carry no properties; they belong to the change's revision.
            change.attach_builds([
                replace(b, revision=b.revision or change.revision, branch=b.branch or change.branch)
                for b in builds
            ])
        return change

    def _select_changes(self, field_name: str, value: str, direct_limit: int) -> List[Change]:
        cfg = self.session.config
        if cfg.use_direct_filter:
            filters: Dict[str, Any] = {"limit": direct_limit, "order": CHANGES_ORDER, field_name: value}
        else:
            filters = {"limit": cfg.changes_fetch_limit, "order": CHANGES_ORDER}
        window = self.session.client.fetch_changes(filters)
        matches = [c for c in window if getattr(c, field_name) == value]
        _logger.debug(
            "%s=%s: %d of %d fetched changes match (%s filter)",
            field_name, value, len(matches), len(window), "direct" if cfg.use_direct_filter else "indirect",
        )
        return matches

    def resolve_revision(self, revision: str) -> RevisionResult:
        """All builds of `revision`, grouped by branch, plus a summary of the revision."""
        changes = self._select_changes("revision", revision, self.session.config.changes_fetch_limit)
        for c in changes:
            self.resolve_change(c)

        by_branch: Dict[Optional[str], List[Build]] = {}
        for c in changes:
            by_branch.setdefault(c.branch, []).extend(c.builds or [])
        change_infos = [
            ChangeInfo(branch=branch, build_stats=BuildStats.from_builds(builds), builds=builds)
            for branch, builds in by_branch.items()
        ]
        # Upstream guarantees one author/comment per revision; the first change speaks for all.
        info = RevisionInfo.from_change(changes[0]) if changes else RevisionInfo(revision=revision)
        return RevisionResult(info=info, change_infos=change_infos)

    def resolve_branch(self, branch: str) -> BranchResult:
        limit = self.session.config.branch_changes_limit
        changes = self._select_changes("branch", branch, limit)[:limit]
        for c in changes:
            self.resolve_change(c)
        all_builds = [b for c in changes for b in (c.builds or [])]
        return BranchResult(branch=branch, changes=changes, build_stats=BuildStats.from_builds(all_builds))

    def builder_changes(self, builder_name: str) -> List[Change]:
        """Recent builds of one builder, each wrapped as an already-resolved change."""
        builder = self.builders.by_name(builder_name)
        if builder.id < 0:
            _logger.warning("builder %r is not in the builder cache", builder_name)
            return []
        filters = {"limit": self.session.config.builder_build_limit, "order": BUILDS_ORDER, "property": ALL_PROPERTIES}
        changes: List[Change] = []
        for b in self.session.client.fetch_builds_for_builder(builder.id, filters):
            # Builds of a builder carry no change id; the build id stands in for it.
            change = Change(
                change_id=b.id,
                revision=b.revision,
                branch=b.branch,
                author=None,
                timestamp=None,
                comments=None,
                builds=[b],
            )
            changes.append(self.resolve_change(change))
        return changes

    # -----------------------------------------------------------------------------
    # Builds / steps / logs
    # -----------------------------------------------------------------------------

    def resolve_build(self, build_id: int) -> Build:
        builds = self.session.client.fetch_builds({"buildid": int(build_id), "property": ALL_PROPERTIES})
        for b in builds:
            if b.id == int(build_id):
                return b
        raise MissingFieldError(field="buildid", record=f"build {build_id}", endpoint="/builds")

    def refresh_build(self, build: Build) -> Build:
        """Re-fetch `build`, keeping the revision and branch it was known under if the server omits them."""
        fresh = self.resolve_build(build.id)
        if fresh.revision is None and build.revision is not None:
            fresh = replace(fresh, revision=build.revision, branch=fresh.branch or build.branch)
        return fresh

    def refresh_step(self, step: Step, build: Build) -> Step:
        for s in self.session.client.fetch_steps(build.id):
            if s.id == step.id:
                return s
        _logger.warning("step %s is no longer listed under build %s", step.id, build.id)
        return step

    def revision_info_for_build(self, build: Build, known: Optional[RevisionInfo] = None) -> Optional[RevisionInfo]:
        """Revision summary for `build`, reusing `known` when it describes the same revision."""
        if known is not None and (build.revision is None or known.revision == build.revision):
            return known
        if not build.revision:
            return None
        return self.revision_info(build.revision)

    def revision_info(self, revision: str) -> RevisionInfo:
        """Summary only; unlike `resolve_revision` this does not fetch any builds."""
        changes = self._select_changes("revision", revision, self.session.config.changes_fetch_limit)
        return RevisionInfo.from_change(changes[0]) if changes else RevisionInfo(revision=revision)

    def build_details(self, build: Build, revision_info: Optional[RevisionInfo] = None) -> BuildResult:
        return BuildResult(
            build=build,
            builder=self.builder_for(build),
            revision_info=revision_info,
            steps=self.session.client.fetch_steps(build.id),
            web_url=self.session.client.build_web_url(build),
        )

    def step_details(self, step: Step, build: Optional[Build] = None) -> StepResult:
        return StepResult(build=build, step=step, logs=self.session.client.fetch_logs(step.id))

    def log_details(self, log: Log, step: Optional[Step] = None) -> LogResult:
        return LogResult(step=step, log=log, text=self.session.client.fetch_log_raw(log.id))

    def builder_for(self, build: Build) -> Builder:
        return self.builders.by_id(build.builder_id)
