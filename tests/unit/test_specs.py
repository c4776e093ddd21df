"""
Unit tests for building fresh user specs.

Key SDET Concepts Demonstrated:
- Pure unit testing with no HTTP layer
- Verifying inputs are left untouched
- Using pytest.raises for expected-exception assertions
"""

from __future__ import annotations

import pytest

from fresh_users.config import USERS_KEY
from fresh_users.errors import MissingUsernameField
from fresh_users.specs import (
    duplicate_roles,
    fresh_specs,
    get_user_specs,
    make_fresh_username,
    missing_roles,
    select_specs,
)

pytestmark = pytest.mark.unit


class TestSelectSpecs:
    """Role filtering."""

    def test_keeps_full_list_order_not_request_order(self, base_config):
        selected = select_specs(["carol", "alice"], get_user_specs(base_config))

        assert [role for role, _ in selected] == ["alice", "carol"]

    def test_unknown_roles_are_dropped_silently(self, base_config):
        selected = select_specs(["alice", "ghost"], get_user_specs(base_config))

        assert [role for role, _ in selected] == ["alice"]

    def test_accepts_role_count_pairs(self, base_config):
        selected = select_specs([("bob", 1)], get_user_specs(base_config))

        assert [role for role, _ in selected] == ["bob"]


class TestMakeFreshUsername:
    """Username rewriting for a single spec."""

    def test_appends_suffix_without_separator(self):
        role, user = make_fresh_username(("alice", {"username": "alice"}), "32.632506")

        assert role == "alice"
        assert user["username"] == "alice32.632506"

    def test_preserves_other_fields_and_their_order(self):
        spec = ("alice", {"server": "localhost", "username": "alice", "password": "makota"})

        _, user = make_fresh_username(spec, "1.2")

        assert list(user) == ["server", "username", "password"]
        assert user["server"] == "localhost"
        assert user["password"] == "makota"

    def test_does_not_mutate_the_template(self):
        template = {"username": "alice"}

        make_fresh_username(("alice", template), "1.2")

        assert template == {"username": "alice"}

    def test_missing_username_is_a_lookup_error(self):
        with pytest.raises(MissingUsernameField) as excinfo:
            make_fresh_username(("alice", {"password": "makota"}), "1.2")

        assert isinstance(excinfo.value, LookupError)
        assert excinfo.value.role == "alice"
        assert "username" in str(excinfo.value)


class TestFreshSpecs:
    """Selection and rewriting combined."""

    def test_every_spec_gets_the_same_suffix(self, base_config):
        specs = fresh_specs(base_config, ["alice", "bob"], "7.42")

        assert [user["username"] for _, user in specs] == ["alice7.42", "bob7.42"]

    def test_returns_fewer_specs_for_unknown_roles(self, base_config):
        specs = fresh_specs(base_config, ["alice", "ghost"], "7.42")

        assert len(specs) == 1

    def test_config_without_users_section_raises_key_error(self):
        with pytest.raises(KeyError, match=USERS_KEY):
            fresh_specs({}, ["alice"], "7.42")

    def test_random_templates(self, user_template_factory):
        templates = [user_template_factory() for _ in range(3)]
        config = {USERS_KEY: templates}

        specs = fresh_specs(config, [role for role, _ in templates], "0.1")

        assert [user["username"] for _, user in specs] == [
            f"{user['username']}0.1" for _, user in templates
        ]


def test_missing_roles_names_unknown_roles_in_request_order(base_config):
    assert missing_roles(base_config, ["zed", "alice", ("ghost", 1)]) == ["zed", "ghost"]


def test_duplicate_roles_are_reported_once():
    assert duplicate_roles(["alice", "bob", ("alice", 1), "alice"]) == ["alice"]
    assert duplicate_roles(["alice", "bob"]) == []
