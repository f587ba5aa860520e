"""
Pytest tests for the Navigator: singleton views, drill-down context
inheritance, ancestor-first resolution and failure isolation.
"""

import pytest

from common_types import BuildStatus, ViewKind
from common_buildbot.conftest import make_build, make_change
from common_buildbot.exceptions import HTTPError, NetworkError
from common_buildbot.models import Builder, Log, Step
from common_buildbot.navigation import Navigator, view_key
from common_buildbot.render import EntityTag


@pytest.fixture
def world(fake):
    fake.builders = [Builder(1, "linux")]
    fake.changes = [make_change(1, "abc123", "main"), make_change(2, "def456", "main")]
    fake.change_builds = {1: [make_build(10, revision="abc123")], 2: [make_build(20, state="building")]}
    fake.builds = [make_build(10, revision="abc123"), make_build(20, state="building")]
    fake.steps = {10: [Step.from_api({"stepid": 100, "number": 1, "name": "compile", "state_string": "compile"})]}
    fake.logs = {100: [Log(1000, "stdio")]}
    fake.raw = {1000: "gcc -c foo.c\nok\n"}
    return fake


@pytest.fixture
def nav(world, make_session):
    session = make_session()
    session.load_builders()
    return Navigator(session)


def _tag(view, kind, index=0):
    return [u.tag for u in view.units if u.tag is not None and u.tag.kind is kind][index]


def test_open_revision_twice_reuses_view(nav, world):
    first = nav.open_revision("abc123")
    n_calls = len(world.calls)
    second = nav.open_revision("abc123")
    assert second is first
    assert len(world.calls) == n_calls


def test_forced_open_refetches_in_place(nav, world):
    first = nav.open_revision("abc123")
    n_changes = len(world.calls_named("changes"))
    old_units = first.units
    again = nav.open_revision("abc123", force=True)
    assert again is first
    assert len(world.calls_named("changes")) == n_changes + 1
    assert first.units is not old_units
    assert first.units == old_units


def test_reload_keeps_identity_and_context(nav, world):
    view = nav.open_revision("abc123")
    before = dict(view.state.data)
    reloaded = nav.reload(view)
    assert reloaded is view
    assert view.identity == (ViewKind.REVISION, "abc123")
    assert view.state.data.keys() == before.keys()


def test_drill_down_inherits_revision_info(nav, world):
    rev_view = nav.open_revision("abc123")
    assert rev_view.state.data["revision_info"].revision == "abc123"
    n_changes = len(world.calls_named("changes"))

    build_view = nav.drill_down(rev_view, _tag(rev_view, ViewKind.BUILD))
    assert build_view.identity == (ViewKind.BUILD, "10")
    assert build_view.result.revision_info is rev_view.state.data["revision_info"]
    # No change lookup was needed for the ancestor context.
    assert len(world.calls_named("changes")) == n_changes
    # The parent's bag is untouched.
    assert "build" not in rev_view.state.data


def test_bare_build_resolves_ancestors_first(nav, world):
    world.calls.clear()
    view = nav.open_build(10)
    assert [c[0] for c in world.calls] == ["builds", "changes", "steps"]
    assert view.result.revision_info.revision == "abc123"
    assert view.result.builder.name == "linux"
    assert view.state.data["build"].id == 10
    assert nav.open_build(10) is view


def test_drill_to_step_and_log(nav, world):
    build_view = nav.open_build(10)
    step_view = nav.drill_down(build_view, _tag(build_view, ViewKind.STEP))
    assert step_view.identity == (ViewKind.STEP, "100")
    assert step_view.result.build.id == 10

    log_view = nav.drill_down(step_view, _tag(step_view, ViewKind.LOG))
    assert log_view.identity == (ViewKind.LOG, "1000")
    assert [u.text for u in log_view.units][-2:] == ["gcc -c foo.c", "ok"]
    assert log_view.tagged_units() == []
    assert set(log_view.state.data) >= {"build", "step", "log", "revision_info"}

    with pytest.raises(ValueError):
        nav.drill_down(log_view, EntityTag(ViewKind.LOG, Log(1, "x")))


def test_branch_view_tags_revisions_and_builds(nav, world):
    view = nav.open_branch("main")
    kinds = [u.tag.kind for u in view.tagged_units()]
    assert kinds == [ViewKind.REVISION, ViewKind.BUILD, ViewKind.REVISION, ViewKind.BUILD]
    rev_view = nav.drill_down(view, _tag(view, ViewKind.REVISION))
    assert rev_view.identity == (ViewKind.REVISION, "def456")
    assert rev_view.state.data["branch"] == "main"


def test_build_from_branch_view_gets_revision_context(nav, world):
    branch_view = nav.open_branch("main")
    # Newest change first: the first build line belongs to def456.
    build_view = nav.drill_down(branch_view, _tag(branch_view, ViewKind.BUILD))
    assert build_view.identity == (ViewKind.BUILD, "20")
    assert build_view.result.build.revision == "def456"
    assert build_view.result.revision_info is not None
    assert build_view.result.revision_info.revision == "def456"
    assert build_view.state.data["revision_info"].revision == "def456"


def test_reload_refetches_the_build_itself(nav, world):
    rev_view = nav.open_revision("def456")
    build_view = nav.drill_down(rev_view, _tag(rev_view, ViewKind.BUILD))
    assert build_view.result.build.status is BuildStatus.PENDING

    world.builds = [make_build(10, revision="abc123"), make_build(20, state="build successful")]
    reloaded = nav.reload(build_view)
    assert reloaded is build_view
    assert build_view.result.build.status is BuildStatus.SUCCESS
    assert build_view.state.data["build"].status is BuildStatus.SUCCESS
    # Ancestor context is still inherited, not looked up again.
    assert build_view.result.revision_info is rev_view.state.data["revision_info"]


def test_reload_refetches_step_and_its_build(nav, world):
    build_view = nav.open_build(10)
    step_view = nav.drill_down(build_view, _tag(build_view, ViewKind.STEP))
    assert step_view.result.step.status is BuildStatus.UNKNOWN

    world.builds = [make_build(10, state="failed (failure)", revision="abc123")]
    world.steps = {10: [Step.from_api({"stepid": 100, "number": 1, "name": "compile", "state_string": "compile (failure)"})]}
    world.calls.clear()
    nav.reload(step_view)
    assert [c[0] for c in world.calls] == ["builds", "steps", "logs"]
    assert step_view.result.step.status is BuildStatus.FAILURE
    assert step_view.result.build.status is BuildStatus.FAILURE


def test_branch_view_with_revisionless_change(nav, world):
    world.changes.append(make_change(3, None, "main"))
    view = nav.open_branch("main")
    assert view.units[2].text.startswith("-  ")
    assert view.units[2].tag is None
    kinds = [u.tag.kind for u in view.tagged_units()]
    assert kinds == [ViewKind.REVISION, ViewKind.BUILD, ViewKind.REVISION, ViewKind.BUILD]


def test_failed_refresh_keeps_previous_content(nav, world):
    view = nav.open_revision("abc123")
    units, result, data = view.units, view.result, dict(view.state.data)
    world.fail_with = NetworkError(endpoint="/changes", message="down")
    with pytest.raises(NetworkError):
        nav.reload(view)
    assert view.units is units
    assert view.result is result
    assert view.state.data == data
    assert nav.get(ViewKind.REVISION, "abc123") is view


def test_failed_first_open_registers_nothing(nav, world):
    world.fail_with = HTTPError(status_code=500, endpoint="/builds", message="boom")
    with pytest.raises(HTTPError):
        nav.open_build(10)
    assert nav.get(ViewKind.BUILD, "10") is None
    assert nav.open_views == []


def test_close_then_reopen_fetches_again(nav, world):
    view = nav.open_branch("main")
    nav.close(view)
    assert nav.get(ViewKind.BRANCH, "main") is None
    n_changes = len(world.calls_named("changes"))
    reopened = nav.open_branch("main")
    assert reopened is not view
    assert len(world.calls_named("changes")) == n_changes + 1


def test_views_do_not_share_entities(nav, world):
    a = nav.open_branch("main")
    b = nav.open_revision("abc123")
    change = a.result.changes[-1]
    assert change.revision == "abc123"
    assert b.result.change_infos[0].builds is not change.builds


def test_view_key_requires_identifying_field():
    assert view_key(ViewKind.BUILD, {"build": 5}) == "5"
    assert view_key(ViewKind.STEP, {"step": Step(7, 1, "x", "", "unknown")}) == "7"
    with pytest.raises(ValueError):
        view_key(ViewKind.REVISION, {"branch": "main"})
