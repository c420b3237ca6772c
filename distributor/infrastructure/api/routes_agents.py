"""Agent endpoints — registration and lookups."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from distributor.application.use_cases.queries import DistributionQueries
from distributor.application.use_cases.register_agent import RegisterAgentUseCase
from distributor.domain.value_objects.enums import Team
from distributor.infrastructure.api.dependencies import (
    get_queries,
    get_register_agent_uc,
    get_team,
)
from distributor.infrastructure.api.serializers import serialize_agent

router = APIRouter(prefix="/agents", tags=["agents"])


class RegisterAgentRequest(BaseModel):
    name: str
    team: str


@router.post("", status_code=201)
async def register_agent(
    body: RegisterAgentRequest,
    register_uc: RegisterAgentUseCase = Depends(get_register_agent_uc),
):
    agent = await register_uc.execute(body.name, body.team)
    return serialize_agent(agent)


@router.get("")
async def list_agents(queries: DistributionQueries = Depends(get_queries)):
    return [serialize_agent(a) for a in await queries.list_agents()]


@router.get("/team/{team}")
async def list_by_team(
    team: Team = Depends(get_team),
    queries: DistributionQueries = Depends(get_queries),
):
    return [serialize_agent(a) for a in await queries.list_agents_by_team(team)]


@router.get("/team/{team}/available")
async def list_available(
    team: Team = Depends(get_team),
    queries: DistributionQueries = Depends(get_queries),
):
    """Agents of *team* with fewer than the maximum active attendances."""
    return [serialize_agent(a) for a in await queries.list_available_agents(team)]


@router.get("/{agent_id}")
async def get_agent(agent_id: int, queries: DistributionQueries = Depends(get_queries)):
    return serialize_agent(await queries.get_agent(agent_id))
