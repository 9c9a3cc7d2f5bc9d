import pytest

from chatwarden.control.control_surface import ControlSurface
from chatwarden.datatypes.control_datatypes import ClearScope
from chatwarden.datatypes.state_datatypes import ConnectionState, GroupInfo


@pytest.fixture
def surface(state):
    return ControlSurface(state)


def test_status_reports_connection_and_counts(surface, state):
    state.set_connection_state(ConnectionState.CONNECTED)
    state.set_known_groups([GroupInfo("g1", "Family", 3), GroupInfo("g2", "Work", 8)])
    state.activate("g1")

    result = surface.get_status()

    assert result.success
    assert result.data == {"status": "connected", "activeGroupsCount": 1, "totalGroups": 2}


def test_list_groups_includes_unknown_active_groups(surface, state):
    state.set_known_groups([GroupInfo("g1", "Family", 3)])
    state.activate("g9")

    groups = surface.list_groups().data["groups"]

    assert groups == [
        {"id": "g1", "name": "Family", "active": False, "participants": 3},
        {"id": "g9", "name": "g9", "active": True, "participants": 0},
    ]


def test_toggle_group(surface, state):
    assert surface.toggle_group("g1", True).message == "Grupo ativado com sucesso!"
    assert state.is_active("g1")
    assert surface.toggle_group("g1", False).success
    assert not state.is_active("g1")


@pytest.mark.parametrize("group_id, active", [("", True), (None, True), ("g1", "yes"), ("g1", 1)])
def test_toggle_group_validation(surface, state, group_id, active):
    result = surface.toggle_group(group_id, active)

    assert not result.success
    assert result.error
    assert state.active_groups == []


def test_set_blocked_words_cleans_entries(surface, state):
    result = surface.set_blocked_words([" porra ", "", "fdp"])

    assert result.success
    assert state.offensive_words == ["porra", "fdp"]
    assert surface.get_blocked_words().data["words"] == ["porra", "fdp"]


@pytest.mark.parametrize("words", ["porra", None, ["ok", 3], {"porra": 1}])
def test_set_blocked_words_rejects_non_lists(surface, state, words):
    before = state.offensive_words

    result = surface.set_blocked_words(words)

    assert not result.success
    assert result.error.startswith("Formato inválido")
    assert state.offensive_words == before


def test_stats(surface, state):
    state.activate("g1")
    state.record_interaction("a")
    state.record_interaction("a")
    state.record_interaction("b")
    state.set_offensive_words(["x"])
    state.clear_warnings("a")

    assert surface.get_stats().data == {
        "activeGroups": 1,
        "totalGroups": 0,
        "totalInteractions": 3,
        "totalWarnings": 0,
        "offensiveWordsCount": 1,
    }


@pytest.mark.parametrize("scope", ["interactions", ClearScope.INTERACTIONS])
def test_clear_interactions_scope(surface, state, scope):
    state.record_interaction("a")
    surface.clear_user_warnings("a")

    assert surface.clear_data(scope).success
    assert state.interactions == {}


def test_clear_all_scope_keeps_registry(surface, state):
    state.activate("g1")
    state.record_interaction("a")

    result = surface.clear_data("all")

    assert result.data == {"scope": "all"}
    assert state.interactions == {}
    assert state.active_groups == ["g1"]


def test_clear_data_rejects_unknown_scope(surface, state):
    state.record_interaction("a")

    result = surface.clear_data("everything")

    assert not result.success
    assert state.interactions == {"a": 1}


def test_unexpected_errors_become_failures(surface, state, monkeypatch):
    def explode(*args):
        raise RuntimeError("boom")

    monkeypatch.setattr(state, "clear_interactions", explode)

    result = surface.clear_data("interactions")

    assert not result.success
    assert "boom" in result.error


def test_clear_user_warnings_validation(surface):
    assert not surface.clear_user_warnings("  ").success
    assert surface.clear_user_warnings("a").success
