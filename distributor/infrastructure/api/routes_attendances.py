"""Attendance endpoints — submit, complete, lookups."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from distributor.application.use_cases.distribute import Distributor
from distributor.application.use_cases.queries import DistributionQueries
from distributor.domain.value_objects.enums import AttendanceStatus, Team
from distributor.infrastructure.api.dependencies import get_distributor, get_queries, get_team
from distributor.infrastructure.api.serializers import serialize_attendance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendances", tags=["attendances"])


class SubmitAttendanceRequest(BaseModel):
    customer_name: str
    subject: str
    team: str


@router.post("", status_code=201)
async def submit_attendance(
    body: SubmitAttendanceRequest,
    distributor: Distributor = Depends(get_distributor),
):
    """Create an attendance; it is assigned at once or queued for its team."""
    logger.info("Submit request: customer=%s, team=%s", body.customer_name, body.team)
    attendance = await distributor.submit(body.team, body.customer_name, body.subject)
    return serialize_attendance(attendance)


@router.get("")
async def list_attendances(queries: DistributionQueries = Depends(get_queries)):
    attendances = await queries.list_attendances()
    return {
        "total": len(attendances),
        "attendances": [serialize_attendance(a) for a in attendances],
    }


@router.get("/team/{team}")
async def list_by_team(
    team: Team = Depends(get_team),
    queries: DistributionQueries = Depends(get_queries),
):
    return [serialize_attendance(a) for a in await queries.list_by_team(team)]


@router.get("/status/{status}")
async def list_by_status(
    status: AttendanceStatus,
    queries: DistributionQueries = Depends(get_queries),
):
    return [serialize_attendance(a) for a in await queries.list_by_status(status)]


@router.get("/{attendance_id}")
async def get_attendance(
    attendance_id: int,
    queries: DistributionQueries = Depends(get_queries),
):
    return serialize_attendance(await queries.get_attendance(attendance_id))


@router.patch("/{attendance_id}/complete", status_code=204)
async def complete_attendance(
    attendance_id: int,
    distributor: Distributor = Depends(get_distributor),
):
    """Complete an attendance, release its agent and serve the team backlog."""
    logger.info("Complete request: attendance=%s", attendance_id)
    await distributor.complete(attendance_id)
    return Response(status_code=204)
