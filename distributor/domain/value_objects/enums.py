"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class Team(str, Enum):
    CARDS = "CARDS"
    LOANS = "LOANS"
    OTHER = "OTHER"


class AttendanceStatus(str, Enum):
    WAITING = "WAITING"
    ASSIGNED = "ASSIGNED"
    COMPLETED = "COMPLETED"


class ChangeKind(str, Enum):
    AGENT_REGISTERED = "agent_registered"
    QUEUED = "queued"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    DRAINED = "drained"
