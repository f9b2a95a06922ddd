"""Candidate routes: profile sync, apply, own applications"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from jobboard.database import get_db
from jobboard.middleware.auth import get_candidate_principal
from jobboard.models.candidate import Candidate
from jobboard.services import applications as application_store
from jobboard.services.guard import CandidatePrincipal

router = APIRouter()


class ProfileSync(BaseModel):
    name: str
    email: str
    resume: Optional[str] = None  # URL handed out by the blob store
    image: Optional[str] = None


class ApplyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: int = Field(alias="jobId")
    cover_letter: Optional[str] = Field(None, alias="coverLetter")
    expected_salary: Optional[int] = Field(None, alias="expectedSalary")


@router.post("/profile")
async def sync_profile(
    data: ProfileSync,
    candidate: CandidatePrincipal = Depends(get_candidate_principal),
    db: AsyncSession = Depends(get_db),
):
    """Create or update the caller's profile from identity-provider data"""
    if data.resume:
        application_store.validate_resume_url(data.resume)

    profile = await db.get(Candidate, candidate.id)
    if profile is None:
        profile = Candidate(id=candidate.id)
        db.add(profile)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)

    await db.commit()
    await db.refresh(profile)
    return {"success": True, "user": profile.to_dict()}


@router.post("/apply")
async def apply_for_job(
    data: ApplyRequest,
    candidate: CandidatePrincipal = Depends(get_candidate_principal),
    db: AsyncSession = Depends(get_db),
):
    app = await application_store.apply_for_job(
        db, candidate.id, data.job_id,
        cover_letter=data.cover_letter,
        expected_salary=data.expected_salary,
    )
    return {"success": True, "message": "Applied Successfully", "application": app.to_dict()}


@router.get("/applications")
async def list_my_applications(
    candidate: CandidatePrincipal = Depends(get_candidate_principal),
    db: AsyncSession = Depends(get_db),
):
    apps = await application_store.list_candidate_applications(db, candidate.id)
    return {"success": True, "applications": [app.to_dict() for app in apps]}
