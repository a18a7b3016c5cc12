from enum import Enum


class PermissionLevel(str, Enum):
    """Capability a user holds on a team, project or task."""

    admin = "admin"
    team_leader = "team_leader"
    member = "member"
    none = "none"
