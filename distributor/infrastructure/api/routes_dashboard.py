"""Dashboard endpoints — raw counts per team and system-wide."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from distributor.application.use_cases.queries import DistributionQueries
from distributor.domain.value_objects.enums import Team
from distributor.infrastructure.api.dependencies import get_queries, get_team
from distributor.infrastructure.api.serializers import (
    serialize_overview,
    serialize_team_status,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/overview")
async def overview(queries: DistributionQueries = Depends(get_queries)):
    return serialize_overview(await queries.overview())


@router.get("/team/{team}")
async def team_status(
    team: Team = Depends(get_team),
    queries: DistributionQueries = Depends(get_queries),
):
    return serialize_team_status(await queries.team_status(team))
