from datetime import datetime, timezone

import pytest

import core.registry as registry_module
from core.entities import Environment, User
from core.registry import DuplicateIdError, Registry, RegistryError

FIXED_NOW = datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def registry():
    return Registry()


@pytest.fixture
def lab_and_ada(registry):
    lab = Environment(1, "Lab")
    ada = User(10, "Ada")
    registry.add_environment(lab)
    registry.add_user(ada)
    return lab, ada


def test_grant_record_revoke_scenario(registry, lab_and_ada):
    lab, ada = lab_and_ada
    assert ada.grant(lab) is True

    first = registry.record_access(ada, lab)
    assert first.granted is True
    assert len(lab) == 1

    assert ada.revoke(lab) is True
    second = registry.record_access(ada, lab)
    assert second.granted is False
    assert len(lab) == 2

    assert registry.remove_user(ada) is True
    assert registry.remove_environment(lab) is True
    assert registry.users == []
    assert registry.environments == []


def test_duplicate_environment_id_rejected(registry):
    registry.add_environment(Environment(1, "Lab"))
    with pytest.raises(DuplicateIdError) as excinfo:
        registry.add_environment(Environment(1, "Other"))
    assert excinfo.value.kind == "environment"
    assert excinfo.value.entity_id == 1
    assert [env.name for env in registry.environments] == ["Lab"]


def test_duplicate_user_id_rejected(registry):
    registry.add_user(User(10, "Ada"))
    with pytest.raises(DuplicateIdError):
        registry.add_user(User(10, "Eve"))
    assert len(registry.users) == 1
    assert isinstance(DuplicateIdError("user", 1), RegistryError)


def test_insertion_order_preserved(registry):
    for user_id in (5, 3, 9):
        registry.add_user(User(user_id, f"user-{user_id}"))
    assert [user.id for user in registry.users] == [5, 3, 9]


def test_remove_user_refused_while_permissions_held(registry, lab_and_ada):
    lab, ada = lab_and_ada
    ada.grant(lab)
    assert registry.remove_user(ada) is False
    assert registry.find_user_by_id(10) is ada

    ada.revoke(lab)
    assert registry.remove_user(ada) is True
    assert registry.find_user_by_id(10) is None


def test_remove_unregistered_user_returns_false(registry):
    assert registry.remove_user(User(99, "Ghost")) is False


def test_remove_environment_sweeps_permissions(registry, lab_and_ada):
    lab, ada = lab_and_ada
    lobby = Environment(2, "Lobby")
    registry.add_environment(lobby)
    grace = User(11, "Grace")
    registry.add_user(grace)
    ada.grant(lab)
    ada.grant(lobby)
    grace.grant(lab)

    assert registry.remove_environment(lab) is True

    assert registry.find_environment_by_id(1) is None
    assert all(1 not in user.environment_ids for user in registry.users)
    assert ada.environment_ids == [2]
    assert registry.remove_user(grace) is True


def test_find_returns_none_when_missing(registry, lab_and_ada):
    assert registry.find_user_by_id(404) is None
    assert registry.find_environment_by_id(404) is None


def test_record_access_uses_current_time(monkeypatch, registry, lab_and_ada):
    lab, ada = lab_and_ada
    monkeypatch.setattr(registry_module, "_now", lambda: FIXED_NOW)
    entry = registry.record_access(ada, lab)
    assert entry.timestamp == FIXED_NOW
    assert entry.user_id == 10
    assert lab.history == [entry]
    assert registry.resolve_user(entry) is ada


def test_resolve_user_after_removal(registry, lab_and_ada):
    lab, ada = lab_and_ada
    entry = registry.record_access(ada, lab)
    registry.remove_user(ada)
    assert registry.resolve_user(entry) is None


def test_permitted_environments_in_grant_order(registry, lab_and_ada):
    lab, ada = lab_and_ada
    lobby = Environment(2, "Lobby")
    registry.add_environment(lobby)
    ada.grant(lobby)
    ada.grant(lab)
    assert registry.permitted_environments(ada) == [lobby, lab]


def test_save_without_storage_raises(registry):
    with pytest.raises(RegistryError):
        registry.save()
    with pytest.raises(RegistryError):
        registry.load()


def test_remove_environment_resolves_by_id(registry, lab_and_ada):
    lab, ada = lab_and_ada
    ada.grant(lab)
    assert registry.remove_environment(Environment(1, "Lab")) is True
    assert registry.find_environment_by_id(1) is None
    assert ada.environment_ids == []


def test_remove_unregistered_environment_changes_nothing(registry, lab_and_ada):
    lab, ada = lab_and_ada
    ada.grant(lab)
    stray = Environment(2, "Stray")
    ada.grant(stray)
    assert registry.remove_environment(stray) is False
    assert ada.environment_ids == [1, 2]
    assert registry.environments == [lab]
