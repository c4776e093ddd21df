"""Account service HTTP routes."""
