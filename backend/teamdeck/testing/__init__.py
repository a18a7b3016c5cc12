"""
Shared test utilities and factories.

Re-exports all factory functions for convenient imports:
    from teamdeck.testing import create_user, create_team, get_auth_headers
"""

from teamdeck.testing.factories import (
    add_team_member,
    assign_project,
    assign_task,
    create_identity,
    create_project,
    create_task,
    create_team,
    create_user,
    get_auth_headers,
    get_auth_token,
)

__all__ = [
    "add_team_member",
    "assign_project",
    "assign_task",
    "create_identity",
    "create_project",
    "create_task",
    "create_team",
    "create_user",
    "get_auth_headers",
    "get_auth_token",
]
