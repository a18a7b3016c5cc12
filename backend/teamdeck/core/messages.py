"""User-facing error messages shared by services and endpoints."""


class AuthMessages:
    NOT_AUTHENTICATED = "Not authenticated"
    INVALID_TOKEN = "Could not validate credentials"
    NOT_REGISTERED = "Account is not registered"
    ADMIN_REQUIRED = "Not authorized - admin required"
    OWNER_REQUIRED = "Not authorized - owner required"
    ADMIN_OR_LEADER_REQUIRED = "Not authorized - admin or team leader required"


class UserMessages:
    NOT_FOUND = "User not found"
    OWNER_ROLE_IMMUTABLE = "Cannot change owner role"
    CANNOT_REMOVE_OWNER = "Cannot remove owner"
    LEADS_TEAMS = "Cannot remove user - they lead {count} team(s). Reassign leadership first."


class TeamMessages:
    NOT_FOUND = "Team not found"
    LEADER_NOT_FOUND = "Leader user not found"
    ALREADY_MEMBER = "User is already a member of this team"
    LEADER_IS_MEMBER = "Team leader already belongs to the team"
    NOT_A_MEMBER = "User is not a member of this team"
    CANNOT_REMOVE_LEADER = "Cannot remove team leader from team"
    NO_ACCESS = "Not authorized - not part of this team"


class ProjectMessages:
    NOT_FOUND = "Project not found"
    NO_ACCESS = "Not authorized - must have access to the project"
    ALREADY_ASSIGNED = "Already assigned to this project"


class TaskMessages:
    NOT_FOUND = "Task not found"
    NO_ACCESS = "Not authorized"
    MEMBERS_STATUS_ONLY = "Members can only update task status"
    ALREADY_ASSIGNED = "Already assigned to this task"


class AssignmentMessages:
    NOT_FOUND = "Assignment not found"


class PaginationMessages:
    INVALID_CURSOR = "Invalid pagination cursor"
