"""
End-to-end tests: fresh users provisioned against the live account service.

Key SDET Concepts Demonstrated:
- Real HTTP provisioning and cleanup
- Concurrent stories that must never share accounts
- Verifying server state after cleanup
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from fresh_users.config import USERS_KEY
from fresh_users.errors import IncompleteProvisioningRequest

pytestmark = pytest.mark.integration


def _can_login(base_url: str, user: dict) -> bool:
    response = requests.post(
        f"{base_url}/api/auth/login",
        json={"username": user["username"], "password": user["password"]},
        timeout=5,
    )
    return response.status_code == 200


def test_story_users_can_authenticate(live_session, story_config):
    def scenario(alice, bob):
        alice_identity = alice.get("/api/auth/verify").json()
        bob_identity = bob.get("/api/auth/verify").json()
        return alice_identity["username"], bob_identity["username"]

    alice_name, bob_name = live_session.story(story_config, ["alice", "bob"], scenario)

    assert alice_name.startswith("alice") and alice_name != "alice"
    assert bob_name.startswith("bob")
    assert alice_name[len("alice"):] == bob_name[len("bob"):]


def test_story_with_config_sees_fresh_usernames(live_session, story_config):
    def scenario(fresh_config, alice):
        users = dict(fresh_config[USERS_KEY])
        assert users["alice"]["username"] == alice.username
        assert alice.get("/api/auth/verify").json()["user_id"] == users["alice"]["user_id"]

    live_session.story_with_config(story_config, ["alice"], scenario)


def test_concurrent_stories_get_separate_accounts(live_session, story_config):
    with ThreadPoolExecutor(max_workers=4) as pool:
        configs = list(pool.map(lambda _: live_session.create_users(story_config, ["alice"]), range(4)))

    usernames = [config[USERS_KEY][0][1]["username"] for config in configs]
    assert len(set(usernames)) == 4
    assert len(live_session.registry) == 4


def test_clean_removes_accounts_from_server(live_session, story_config, live_server):
    fresh_config = live_session.create_users(story_config, ["alice", "bob"])
    users = [user for _, user in fresh_config[USERS_KEY]]
    assert all(_can_login(live_server, user) for user in users)

    live_session.clean()

    assert len(live_session.registry) == 0
    assert not any(_can_login(live_server, user) for user in users)


def test_unknown_role_creates_nothing(live_session, story_config):
    with pytest.raises(IncompleteProvisioningRequest, match="ghost"):
        live_session.create_users(story_config, ["alice", "ghost"])

    assert len(live_session.registry) == 0


def test_restarted_registry_accepts_new_users(live_session, story_config):
    live_session.create_users(story_config, ["alice"])
    live_session.clean()
    live_session.stop()

    live_session.start()
    live_session.create_users(story_config, ["bob"])

    assert len(live_session.registry) == 1


def test_plugin_fixture_factory(live_server, story_config, fresh_config_factory):
    """
    The pytest plugin fixture provisions through the default session.

    ``live_server`` is requested first so it outlives the session-scoped
    cleanup that deletes this account.
    """
    fresh_config = fresh_config_factory(story_config, ["bob"])

    assert _can_login(live_server, fresh_config[USERS_KEY][0][1])
