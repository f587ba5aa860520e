# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Drill-down navigation over branch -> revision -> build -> step -> log.

A view is identified by (kind, key): branch name, revision id, build id,
step id or log id. Each view owns a data bag with its own key plus whatever
ancestor context is already known (e.g. `revision_info` for a build opened
from a revision view), so a child view never re-fetches the revision summary
its parent already resolved. The entity a view shows is fetched on every
resolve.

Opening an identity that is already open returns the same `View` untouched
unless `force=True`. A forced or fresh open resolves synchronously, ancestors
first, and only commits the new content once every request has succeeded;
if anything fails the previous content stays as it was.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from common_types import ViewKind

from .models import Build, Log, Step
from .render import EntityTag, RenderUnit, TextRenderer
from .resolver import EntityResolver
from .session import Session

_logger = logging.getLogger(__name__)

# Data-bag field holding each kind's identifying value.
DATA_FIELDS: Dict[ViewKind, str] = {
    ViewKind.BRANCH: "branch",
    ViewKind.REVISION: "revision",
    ViewKind.BUILD: "build",
    ViewKind.STEP: "step",
    ViewKind.LOG: "log",
}
REVISION_INFO_FIELD = "revision_info"

ViewIdentity = Tuple[ViewKind, str]


def view_key(kind: ViewKind, data: Mapping[str, Any]) -> str:
    field_name = DATA_FIELDS[kind]
    value = data.get(field_name)
    if value is None:
        raise ValueError(f"{kind.value} view needs '{field_name}' in its data")
    if isinstance(value, (Build, Step, Log)):
        return str(value.id)
    return str(value)


class ViewState:
    def __init__(self, kind: ViewKind, data: Mapping[str, Any]):
        self.kind = kind
        self.data: Dict[str, Any] = dict(data)

    @property
    def key(self) -> str:
        return view_key(self.kind, self.data)

    def __repr__(self) -> str:
        return f"ViewState({self.kind.value}, {sorted(self.data)})"


class View:
    """One open view: its state, the resolved result and the rendered lines."""

    def __init__(self, state: ViewState, result: Any, units: List[RenderUnit]):
        self.state = state
        self.result = result
        self.units = units

    @property
    def identity(self) -> ViewIdentity:
        return (self.state.kind, self.state.key)

    @property
    def kind(self) -> ViewKind:
        return self.state.kind

    def tagged_units(self) -> List[RenderUnit]:
        return [u for u in self.units if u.tag is not None]


class Navigator:
    def __init__(self, session: Session, renderer: Optional[Any] = None):
        self.session = session
        self.resolver = EntityResolver(session)
        self.renderer = renderer if renderer is not None else TextRenderer(session.builders)
        self._views: Dict[ViewIdentity, View] = {}
        self._handlers: Dict[ViewKind, Callable[[Dict[str, Any]], Any]] = {
            ViewKind.BRANCH: self._resolve_branch,
            ViewKind.REVISION: self._resolve_revision,
            ViewKind.BUILD: self._resolve_build,
            ViewKind.STEP: self._resolve_step,
            ViewKind.LOG: self._resolve_log,
        }

    # -----------------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------------

    def open_branch(self, branch: str, *, force: bool = False) -> View:
        return self.open(ViewKind.BRANCH, {DATA_FIELDS[ViewKind.BRANCH]: branch}, force=force)

    def open_revision(self, revision: str, *, force: bool = False) -> View:
        return self.open(ViewKind.REVISION, {DATA_FIELDS[ViewKind.REVISION]: revision}, force=force)

    def open_build(self, build_id: int, *, force: bool = False) -> View:
        """Open a build with no ancestor context; its revision is looked up on demand."""
        return self.open(ViewKind.BUILD, {DATA_FIELDS[ViewKind.BUILD]: int(build_id)}, force=force)

    # -----------------------------------------------------------------------------
    # State machine
    # -----------------------------------------------------------------------------

    def get(self, kind: ViewKind, key: str) -> Optional[View]:
        return self._views.get((kind, str(key)))

    @property
    def open_views(self) -> List[View]:
        return list(self._views.values())

    def open(self, kind: ViewKind, data: Mapping[str, Any], *, force: bool = False) -> View:
        state = ViewState(kind, data)
        identity = (kind, state.key)
        existing = self._views.get(identity)
        if existing is not None and not force:
            _logger.debug("reusing open %s view %s", kind.value, identity[1])
            return existing

        new_data, result, units = self._resolve(state)
        if existing is not None:
            existing.state.data = new_data
            existing.result = result
            existing.units = units
            return existing
        view = View(ViewState(kind, new_data), result, units)
        self._views[identity] = view
        return view

    def drill_down(self, view: View, tag: EntityTag, *, force: bool = False) -> View:
        """Open the entity behind `tag`, inheriting `view`'s known context."""
        if view.kind is ViewKind.LOG:
            raise ValueError("log views are terminal")
        data = dict(view.state.data)
        data[DATA_FIELDS[tag.kind]] = tag.payload
        return self.open(tag.kind, data, force=force)

    def reload(self, view: View) -> View:
        return self.open(view.state.kind, view.state.data, force=True)

    def close(self, view: View) -> None:
        if self._views.get(view.identity) is view:
            del self._views[view.identity]

    def _resolve(self, state: ViewState) -> Tuple[Dict[str, Any], Any, List[RenderUnit]]:
        """Resolve into a copy of the data bag; nothing is committed here."""
        data = dict(state.data)
        _logger.info("resolving %s view %s", state.kind.value, state.key)
        result = self._handlers[state.kind](data)
        units = self.renderer.render(state.kind, result)
        return data, result, units

    # -----------------------------------------------------------------------------
    # Per-kind handlers (mutate only their private copy of the data bag)
    # -----------------------------------------------------------------------------

    def _resolve_branch(self, data: Dict[str, Any]) -> Any:
        return self.resolver.resolve_branch(str(data["branch"]))

    def _resolve_revision(self, data: Dict[str, Any]) -> Any:
        result = self.resolver.resolve_revision(str(data["revision"]))
        data[REVISION_INFO_FIELD] = result.info
        return result

    def _resolve_build(self, data: Dict[str, Any]) -> Any:
        # The build itself is always re-fetched; only its revision context is inherited.
        build = data["build"]
        if isinstance(build, Build):
            build = self.resolver.refresh_build(build)
        else:
            build = self.resolver.resolve_build(int(build))
        data["build"] = build
        info = self.resolver.revision_info_for_build(build, data.get(REVISION_INFO_FIELD))
        if info is not None:
            data[REVISION_INFO_FIELD] = info
        return self.resolver.build_details(build, info)

    def _resolve_step(self, data: Dict[str, Any]) -> Any:
        step = data["step"]
        build = data.get("build")
        if not isinstance(build, Build):
            return self.resolver.step_details(step, None)
        build = self.resolver.refresh_build(build)
        step = self.resolver.refresh_step(step, build)
        data["build"] = build
        data["step"] = step
        return self.resolver.step_details(step, build)

    def _resolve_log(self, data: Dict[str, Any]) -> Any:
        step = data.get("step")
        return self.resolver.log_details(data["log"], step if isinstance(step, Step) else None)
