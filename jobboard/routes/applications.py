"""Recruiter-side application routes"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel
from typing import Optional

from jobboard.database import get_db
from jobboard.errors import NotFoundOrUnauthorizedError
from jobboard.middleware.auth import get_company_principal
from jobboard.services import applications as application_store
from jobboard.services import workflow
from jobboard.services.events import NotificationDispatcher, get_dispatcher
from jobboard.services.guard import CompanyPrincipal

router = APIRouter()


class StatusUpdate(BaseModel):
    status: str


class ReviewUpdate(BaseModel):
    status: str
    notes: Optional[str] = None
    rating: Optional[int] = None


# Literal paths first, /{application_id} would swallow them otherwise

@router.get("/company")
async def list_company_applications(
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
):
    apps = await application_store.list_company_applications(db, company.id)
    return {"success": True, "applications": [app.to_dict() for app in apps]}


@router.get("/job/{job_id}/stats")
async def get_job_stats(
    job_id: int,
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
):
    stats = await application_store.job_application_stats(db, company.id, job_id)
    return {"success": True, "stats": stats}


@router.get("/job/{job_id}")
async def list_job_applications(
    job_id: int,
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
):
    apps = await application_store.list_job_applications(db, company.id, job_id)
    return {"success": True, "applications": [app.to_dict() for app in apps]}


@router.get("/{application_id}")
async def get_application(
    application_id: int,
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
):
    app = await application_store.get_company_application(db, company.id, application_id)
    if app is None:
        # Same answer whether the application is missing or someone else's
        raise NotFoundOrUnauthorizedError(
            "Application not found or you are not authorized to view it"
        )
    return {"success": True, "application": app.to_dict()}


@router.put("/{application_id}")
async def update_application_status(
    application_id: int,
    data: StatusUpdate,
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    app, events = await workflow.update_application_status(db, company, application_id, data.status)
    await dispatcher.dispatch(events)
    return {
        "success": True,
        "message": "Application status updated successfully",
        "application": app.to_dict(),
    }


@router.put("/{application_id}/review")
async def review_application(
    application_id: int,
    data: ReviewUpdate,
    company: CompanyPrincipal = Depends(get_company_principal),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    app, events = await workflow.review_application(
        db, company, application_id, data.status, notes=data.notes, rating=data.rating
    )
    await dispatcher.dispatch(events)
    return {
        "success": True,
        "message": "Application status updated successfully",
        "application": app.to_dict(),
    }
