"""Backlog endpoints — contents, size and the administrative clear."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from distributor.application.use_cases.distribute import Distributor
from distributor.application.use_cases.queries import DistributionQueries
from distributor.domain.value_objects.enums import Team
from distributor.infrastructure.api.dependencies import get_distributor, get_queries, get_team
from distributor.infrastructure.api.serializers import serialize_attendance

router = APIRouter(prefix="/queues", tags=["queues"])


@router.get("/{team}")
async def queue_contents(
    team: Team = Depends(get_team),
    queries: DistributionQueries = Depends(get_queries),
):
    """Waiting attendances of *team*, head of the queue first."""
    return [serialize_attendance(a) for a in await queries.queue_contents(team)]


@router.get("/{team}/size")
async def queue_size(
    team: Team = Depends(get_team),
    queries: DistributionQueries = Depends(get_queries),
):
    return {"team": team.value, "size": await queries.queue_size(team)}


@router.delete("/{team}")
async def clear_queue(
    team: Team = Depends(get_team),
    distributor: Distributor = Depends(get_distributor),
):
    removed = await distributor.clear_backlog(team)
    return {"team": team.value, "removed": removed}
