from types import SimpleNamespace

from app.models.leaderboard import Leaderboard
from app.services.visibility import audience_matches, filter_visible, is_visible


def resource(roles=(), positions=()):
    return SimpleNamespace(visible_to_roles=list(roles), visible_to_positions=list(positions))


def user(role="USER", position=None):
    return SimpleNamespace(role=role, position=position)


def test_unrestricted_resource_is_visible_to_everyone():
    assert is_visible(resource(), "USER", None, False)
    assert is_visible(resource(), "USER", "JUNIOR_EC", False)


def test_position_restriction():
    r = resource(positions=["MANAGER"])
    assert not is_visible(r, "USER", "JUNIOR_EC", False)
    assert is_visible(r, "USER", "MANAGER", False)


def test_manager_flag_bypasses_restrictions():
    r = resource(roles=["ADMIN"], positions=["MANAGER"])
    assert is_visible(r, "USER", "JUNIOR_EC", True)


def test_caller_without_position_fails_position_restriction():
    r = resource(positions=["ENERGY_CONSULTANT"])
    assert not is_visible(r, "USER", None, False)


def test_role_and_position_must_both_pass():
    r = resource(roles=["USER"], positions=["ENERGY_SPECIALIST"])
    assert is_visible(r, "USER", "ENERGY_SPECIALIST", False)
    assert not is_visible(r, "ADMIN", "ENERGY_SPECIALIST", False)
    assert not is_visible(r, "USER", "JUNIOR_EC", False)


def test_role_restriction_only():
    r = resource(roles=["ADMIN"])
    assert not is_visible(r, "USER", "MANAGER", False)
    assert is_visible(r, "ADMIN", None, False)


def test_leaderboard_is_scoped_by_positions_only():
    board = Leaderboard(name="Closers", type="CLOSERS", period="MONTHLY", for_positions=["ENERGY_CONSULTANT"])
    assert board.visible_to_roles == []
    assert is_visible(board, "USER", "ENERGY_CONSULTANT", False)
    assert not is_visible(board, "ADMIN", "JUNIOR_EC", False)


def test_filter_visible_keeps_order_and_applies_manager_bypass():
    a, b, c = resource(), resource(positions=["MANAGER"]), resource(positions=["JUNIOR_EC"])
    assert filter_visible([a, b, c], user(position="JUNIOR_EC")) == [a, c]
    assert filter_visible([a, b, c], user(role="ADMIN")) == [a, b, c]


def test_audience_has_no_manager_bypass():
    manager = user(position="MANAGER")
    assert not audience_matches(manager, [], ["JUNIOR_EC"])
    assert audience_matches(manager, [], [])
    assert not audience_matches(user(), ["USER"], ["JUNIOR_EC"])
