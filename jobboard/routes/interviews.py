"""Interview scheduling routes (company side) and confirmation (candidate side)"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from jobboard.database import get_db
from jobboard.middleware.auth import get_candidate_principal, get_company_principal
from jobboard.services import interviews as interview_store
from jobboard.services import workflow
from jobboard.services.events import NotificationDispatcher, get_dispatcher
from jobboard.services.guard import CandidatePrincipal, CompanyPrincipal

router = APIRouter()


class MeetingDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location: Optional[str] = None
    platform: Optional[str] = None
    join_url: Optional[str] = Field(None, alias="joinUrl")
    notes: Optional[str] = None


class ScheduleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    application_id: int = Field(alias="applicationId")
    scheduled_time: datetime = Field(alias="scheduledTime")
    duration: int = 60
    meeting_type: str = Field(alias="meetingType")
    meeting_details: MeetingDetails = Field(default_factory=MeetingDetails, alias="meetingDetails")
    interviewers: Optional[List[int]] = None


class InterviewStatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None


@router.post("/company/schedule")
async def schedule_interview(
    data: ScheduleRequest,
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    details = data.meeting_details
    interview, events = await workflow.schedule_interview(
        db,
        company,
        data.application_id,
        data.scheduled_time,
        data.meeting_type,
        duration=data.duration,
        location=details.location,
        platform=details.platform,
        join_url=details.join_url,
        notes=details.notes,
        interviewers=data.interviewers,
    )
    await dispatcher.dispatch(events)
    return {"success": True, "interview": interview.to_dict()}


@router.get("/company/list")
async def list_company_interviews(
    status: Optional[str] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
):
    interviews = await interview_store.list_company_interviews(
        db, company.id, status=status, start_date=start_date, end_date=end_date
    )
    return {"success": True, "interviews": [i.to_dict() for i in interviews]}


@router.put("/company/{interview_id}/status")
async def update_interview_status(
    interview_id: int,
    data: InterviewStatusUpdate,
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
):
    interview = await workflow.update_interview_status(db, company, interview_id, data.status, data.notes)
    return {"success": True, "interview": interview.to_dict()}


@router.get("/candidate/list")
async def list_candidate_interviews(
    candidate: CandidatePrincipal = Depends(get_candidate_principal),
    db: AsyncSession = Depends(get_db),
):
    interviews = await interview_store.list_candidate_upcoming(db, candidate.id)
    return {"success": True, "interviews": [i.to_dict() for i in interviews]}


@router.put("/candidate/{interview_id}/confirm")
async def confirm_interview(
    interview_id: int,
    candidate: CandidatePrincipal = Depends(get_candidate_principal),
    db: AsyncSession = Depends(get_db),
):
    interview = await workflow.confirm_interview(db, candidate, interview_id)
    return {"success": True, "interview": interview.to_dict()}
