"""Tests for the skill tree session lifecycle, toggles and navigation."""

from skilltree.errors import (
    CategoryNotFoundError,
    CyclicDependencyError,
    InvalidOrientationError,
    LoadError,
    PersistenceError,
    SessionStateError,
    TrickNotFoundError,
)
from skilltree.models import Category
from skilltree.session import (
    LEARNED_MESSAGE,
    REMOVED_MESSAGE,
    UNSAVED_MESSAGE,
    SkillTreeSession,
    ViewState,
    display_title,
)

from conftest import trick


def ready_session(store, user_id="user-1", orientation="horizontal"):
    session = SkillTreeSession(store)
    result = session.init("cat-1", user_id, orientation)
    assert result.ok, result.error
    return session


class TestLifecycle:
    def test_new_session_is_empty(self, flaky_store):
        session = SkillTreeSession(flaky_store)
        assert session.state == ViewState.EMPTY
        assert session.graph is None
        assert session.incomplete_order() == ()

    def test_init_reaches_ready(self, flaky_store):
        session = ready_session(flaky_store)
        assert session.state == ViewState.READY
        assert session.graph.is_positioned
        assert session.graph.node_order == ("bounce", "seat", "back", "swivel", "flip")
        assert session.incomplete_order() == ("bounce", "back", "swivel", "flip")
        assert session.progress == (1, 5)
        assert session.title == "Trampoline Skill Tree"

    def test_init_by_slug(self, flaky_store):
        session = SkillTreeSession(flaky_store)
        assert session.init("trampoline", "user-1").ok
        assert session.category.id == "cat-1"

    def test_unknown_category_is_error(self, flaky_store):
        session = SkillTreeSession(flaky_store)
        result = session.init("cat-404", "user-1")
        assert not result.ok
        assert isinstance(result.error, CategoryNotFoundError)
        assert session.state == ViewState.ERROR

    def test_error_is_terminal_until_retry(self, flaky_store):
        flaky_store.raise_on_list = True
        session = SkillTreeSession(flaky_store)
        result = session.init("cat-1", "user-1")
        assert isinstance(result.error, LoadError)
        assert session.state == ViewState.ERROR

        assert isinstance(session.toggle("seat").error, SessionStateError)
        assert session.auto_focus_initial() is None

        flaky_store.raise_on_list = False
        assert session.retry().ok
        assert session.state == ViewState.READY

    def test_cycle_fails_the_load(self, category):
        from skilltree.store import InMemoryTrickStore

        store = InMemoryTrickStore(
            [category],
            [trick("X", refs=["Y"]), trick("Y", refs=["X"])],
        )
        session = SkillTreeSession(store)
        result = session.init("cat-1")
        assert isinstance(result.error, CyclicDependencyError)
        assert session.state == ViewState.ERROR

    def test_dispose(self, flaky_store):
        session = ready_session(flaky_store)
        session.dispose()
        assert session.state == ViewState.EMPTY
        assert session.completion.completed == frozenset()
        assert session.retry().error is not None

    def test_warnings_returned_with_success(self, category):
        from skilltree.store import InMemoryTrickStore

        store = InMemoryTrickStore([category], [trick("A", refs=["Nonexistent Trick"])])
        result = SkillTreeSession(store).init("cat-1")
        assert result.ok
        assert len(result.warnings) == 1


class TestToggle:
    def test_learn_then_remove(self, flaky_store):
        session = ready_session(flaky_store)

        result = session.toggle("back")
        assert result.ok
        assert result.value.completed is True
        assert result.value.persisted is True
        assert result.value.message == LEARNED_MESSAGE
        assert "back" in flaky_store.completions["user-1"]
        assert session.graph.node("back").completed
        assert session.incomplete_order() == ("bounce", "swivel", "flip")

        result = session.toggle("back")
        assert result.value.message == REMOVED_MESSAGE
        assert "back" not in flaky_store.completions["user-1"]

    def test_satisfied_edges_follow_completion(self, flaky_store):
        session = ready_session(flaky_store)
        session.toggle("back")
        satisfied = {(e.source_id, e.target_id): e.satisfied for e in session.graph.edges}
        assert satisfied[("seat", "back")] is True
        assert satisfied[("back", "flip")] is False

    def test_rejected_write_rolls_back(self, flaky_store):
        session = ready_session(flaky_store)
        before = session.completion.completed
        flaky_store.reject_ids.add("flip")

        result = session.toggle("flip")
        assert not result.ok
        assert isinstance(result.error, PersistenceError)
        assert session.completion.completed == before
        assert not session.graph.node("flip").completed

    def test_raising_write_rolls_back(self, flaky_store):
        session = ready_session(flaky_store)
        flaky_store.raise_ids.add("seat")

        result = session.toggle("seat")
        assert isinstance(result.error, PersistenceError)
        assert "write timed out" in str(result.error)
        assert "seat" in session.completion

    def test_failures_are_independent_per_trick(self, flaky_store):
        session = ready_session(flaky_store)
        first = session.begin_toggle("back")
        session.begin_toggle("swivel")

        result = session.settle_toggle(first, succeeded=False)
        assert isinstance(result.error, PersistenceError)
        assert "back" not in session.completion
        assert "swivel" in session.completion

    def test_stale_intent_after_dispose(self, flaky_store):
        session = ready_session(flaky_store)
        intent = session.begin_toggle("back")
        session.dispose()
        assert isinstance(session.settle_toggle(intent, False).error, SessionStateError)

    def test_anonymous_toggle_is_not_persisted(self, flaky_store):
        session = ready_session(flaky_store, user_id=None)
        assert session.progress == (0, 5)

        result = session.toggle("seat")
        assert result.ok
        assert result.value.persisted is False
        assert result.value.message == UNSAVED_MESSAGE
        assert flaky_store.writes == []
        assert "seat" in session.completion

    def test_unknown_trick(self, flaky_store):
        session = ready_session(flaky_store)
        assert isinstance(session.toggle("nope").error, TrickNotFoundError)


class TestLayoutReuse:
    def test_toggle_does_not_move_nodes(self, flaky_store):
        session = ready_session(flaky_store)
        before = [(n.id, n.x, n.y) for n in session.graph.nodes]
        session.toggle("back")
        session.toggle("flip")
        assert [(n.id, n.x, n.y) for n in session.graph.nodes] == before
        assert len(session._positions) == 1

    def test_set_orientation(self, flaky_store):
        session = ready_session(flaky_store)
        horizontal = {n.id: (n.rank, n.order) for n in session.graph.nodes}
        assert session.set_orientation("vertical").ok
        assert session.graph.orientation == "vertical"
        assert {n.id: (n.rank, n.order) for n in session.graph.nodes} == horizontal
        assert session.navigator.is_mobile is True

    def test_unknown_orientation_leaves_session_ready(self, flaky_store):
        session = ready_session(flaky_store)
        graph = session.graph

        result = session.set_orientation("diagonal")
        assert isinstance(result.error, InvalidOrientationError)
        assert session.state == ViewState.READY
        assert session.orientation == "horizontal"
        assert session.graph is graph
        assert session.toggle("back").ok

    def test_unknown_orientation_on_init(self, flaky_store):
        session = SkillTreeSession(flaky_store)
        result = session.init("cat-1", "user-1", "diagonal")
        assert isinstance(result.error, InvalidOrientationError)
        assert session.state == ViewState.EMPTY
        assert session.init("cat-1", "user-1", "vertical").ok

    def test_positions_dropped_when_loading_another_category(self, data_store):
        session = SkillTreeSession(data_store)
        assert session.init("trampoline", "demo-user").ok
        assert session.set_orientation("vertical").ok
        assert len(session._positions) == 2

        assert session.init("tricking", "demo-user").ok
        assert len(session._positions) == 1
        assert session.graph.node("t-seat") is None

    def test_set_orientation_requires_ready(self, flaky_store):
        result = SkillTreeSession(flaky_store).set_orientation("vertical")
        assert isinstance(result.error, SessionStateError)


class TestSessionNavigation:
    def test_auto_focus_then_cycle(self, flaky_store):
        session = ready_session(flaky_store)
        intent = session.auto_focus_initial()
        assert intent.kind == "fit"
        assert intent.node_id == "bounce"
        assert session.auto_focus_initial() is None

        assert session.focus_next().node_id == "back"
        assert session.focus_previous().node_id == "bounce"
        assert session.focus_previous().node_id == "flip"

    def test_all_completed(self, category):
        from skilltree.store import InMemoryTrickStore

        store = InMemoryTrickStore(
            [category],
            [trick("A"), trick("B", refs=["A"])],
            completions={"u": {"A", "B"}},
        )
        session = SkillTreeSession(store)
        assert session.init("cat-1", "u").ok
        assert session.incomplete_order() == ()
        assert session.focus_next() is None
        assert session.focus_previous() is None
        assert session.auto_focus_initial().node_id is None

    def test_empty_category(self):
        from skilltree.store import InMemoryTrickStore

        store = InMemoryTrickStore([Category("c", "Empty", "empty")], [])
        session = SkillTreeSession(store)
        result = session.init("c")
        assert result.ok
        assert result.value.nodes == [] and result.value.edges == []
        assert session.auto_focus_initial() is None


class TestDisplayTitle:
    def test_slug_to_title(self):
        assert display_title("freestyle-trampoline") == "Freestyle Trampoline Skill Tree"

    def test_missing_slug(self):
        assert display_title(None) == "Skill Tree"
