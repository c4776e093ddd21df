"""Root conftest: load the fresh-users fixtures for this repository's suite."""

pytest_plugins = ["fresh_users.pytest_plugin"]
