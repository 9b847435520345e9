"""ORM model package."""

from app.models.entities import (
    ApiKey,
    Client,
    Contract,
    ContractPayment,
    ContractProject,
    Epic,
    InternalProject,
    InternalTask,
    Lead,
    Meeting,
    MeetingMember,
    MeetingTeam,
    Member,
    Project,
    ProjectMember,
    ProjectTeam,
    Story,
    StoryMember,
    Suggestion,
    SuggestionComment,
    SuggestionVote,
    Task,
    TaskMember,
    TaskTeam,
    Team,
    TeamMembership,
    Transaction,
    User,
)

__all__ = [
    "ApiKey",
    "Client",
    "Contract",
    "ContractPayment",
    "ContractProject",
    "Epic",
    "InternalProject",
    "InternalTask",
    "Lead",
    "Meeting",
    "MeetingMember",
    "MeetingTeam",
    "Member",
    "Project",
    "ProjectMember",
    "ProjectTeam",
    "Story",
    "StoryMember",
    "Suggestion",
    "SuggestionComment",
    "SuggestionVote",
    "Task",
    "TaskMember",
    "TaskTeam",
    "Team",
    "TeamMembership",
    "Transaction",
    "User",
]
