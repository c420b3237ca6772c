"""SubmissionRules — validation applied before any state is touched."""

from __future__ import annotations

from distributor.domain.errors import ValidationError
from distributor.domain.value_objects.enums import Team


def parse_team(value: Team | str | None) -> Team:
    """Coerce *value* into a Team, rejecting anything outside the closed set."""
    if value is None:
        raise ValidationError("team is required")
    if isinstance(value, Team):
        return value
    try:
        return Team(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(t.value for t in Team)
        raise ValidationError(f"Unknown team {value!r} (expected one of: {allowed})") from None


def require_text(value: str | None, field: str) -> str:
    """Return *value* stripped, or raise if it is missing or blank."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()
