"""
Status transition engine for applications and interviews.

Every operation follows the same order: validate input, load the record
through the authorization guard, mutate, commit, and only then build the
domain events the caller passes to the notification dispatcher. A failed
notification therefore cannot undo or fail a committed status change.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import NotFoundOrUnauthorizedError, ValidationError
from jobboard.models.application import APPLICATION_STATUSES, JobApplication
from jobboard.models.company import Company
from jobboard.models.interview import (
    INTERVIEW_STATUSES, MEETING_TYPES, Interview, InterviewInterviewer,
)
from jobboard.services import applications as application_store
from jobboard.services import interviews as interview_store
from jobboard.services.events import ApplicationStatusChanged, InterviewScheduled
from jobboard.services.guard import (
    CandidatePrincipal, CompanyPrincipal, can_confirm_interview, can_manage_interview,
)
from jobboard.utils.dates import to_naive_utc, utcnow
from jobboard.utils.logger import get_logger

logger = get_logger("workflow")

# Allowed next states per current state. Every status may move to every
# other status; restricting the workflow means editing this table.
APPLICATION_TRANSITIONS = {
    status: frozenset(APPLICATION_STATUSES) for status in APPLICATION_STATUSES
}


def validate_application_status(status) -> str:
    if status not in APPLICATION_STATUSES:
        raise ValidationError("Invalid status value")
    return status


def validate_rating(rating) -> Optional[int]:
    if rating is None:
        return None
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return rating


def validate_interview_status(status) -> str:
    if status not in INTERVIEW_STATUSES:
        raise ValidationError("Invalid interview status")
    return status


def apply_status(application: JobApplication, status: str, now: datetime = None) -> None:
    """Move an application to `status` and stamp last_status_update."""
    validate_application_status(status)
    allowed = APPLICATION_TRANSITIONS.get(application.status, frozenset())
    if status not in allowed:
        raise ValidationError(f"Cannot change status from {application.status} to {status}")
    application.status = status
    application.last_status_update = now or utcnow()


def _status_changed(application: JobApplication) -> ApplicationStatusChanged:
    candidate = application.candidate
    job = application.job
    return ApplicationStatusChanged(
        application_id=application.id,
        recipient=candidate.email if candidate else None,
        job_title=job.title if job else "your application",
        status=application.status,
    )


async def update_application_status(
    db: AsyncSession,
    company: CompanyPrincipal,
    application_id: int,
    status: str,
) -> Tuple[JobApplication, List[ApplicationStatusChanged]]:
    validate_application_status(status)

    application = await application_store.get_company_application(db, company.id, application_id)
    if application is None:
        raise NotFoundOrUnauthorizedError(
            "Application not found or you are not authorized to update it"
        )

    apply_status(application, status)
    await db.commit()
    application = await application_store.get_application(db, application.id)
    logger.info(
        f"Application {application.id} moved to {status}",
        extra={"application_id": application.id, "principal": f"company:{company.id}"},
    )
    return application, [_status_changed(application)]


async def review_application(
    db: AsyncSession,
    company: CompanyPrincipal,
    application_id: int,
    status: str,
    notes: Optional[str] = None,
    rating: Optional[int] = None,
) -> Tuple[JobApplication, List[ApplicationStatusChanged]]:
    """Status change that also records recruiter notes and rating."""
    validate_application_status(status)
    validate_rating(rating)

    application = await application_store.get_company_application(db, company.id, application_id)
    if application is None:
        raise NotFoundOrUnauthorizedError(
            "Application not found or you are not authorized to update it"
        )

    apply_status(application, status)
    if notes is not None:
        application.recruiter_notes = notes
    if rating is not None:
        application.recruiter_rating = rating
    await db.commit()
    application = await application_store.get_application(db, application.id)
    return application, [_status_changed(application)]


async def schedule_interview(
    db: AsyncSession,
    company: CompanyPrincipal,
    application_id: int,
    scheduled_time: datetime,
    meeting_type: str,
    duration: int = 60,
    location: Optional[str] = None,
    platform: Optional[str] = None,
    join_url: Optional[str] = None,
    notes: Optional[str] = None,
    interviewers: Optional[List[int]] = None,
) -> Tuple[Interview, List[InterviewScheduled]]:
    if meeting_type not in MEETING_TYPES:
        raise ValidationError("Invalid meeting type. Must be either online or in-person")
    if duration is None or duration <= 0:
        raise ValidationError("Duration must be a positive number of minutes")

    scheduled_time = to_naive_utc(scheduled_time)
    if scheduled_time < utcnow():
        # Accepted as-is; recruiters sometimes log interviews after the fact
        logger.warning(
            "Interview scheduled in the past",
            extra={"application_id": application_id, "principal": f"company:{company.id}"},
        )

    application = await application_store.get_company_application(db, company.id, application_id)
    if application is None:
        raise NotFoundOrUnauthorizedError("Application not found or unauthorized")

    interviewer_ids = list(dict.fromkeys(interviewers or [company.id]))
    known = set((await db.execute(select(Company.id).where(Company.id.in_(interviewer_ids)))).scalars())
    if len(known) != len(interviewer_ids):
        raise ValidationError("Unknown interviewer")

    interview = Interview(
        application_id=application.id,
        scheduled_time=scheduled_time,
        duration=duration,
        meeting_type=meeting_type,
        status='scheduled',
        location=location,
        platform=platform,
        join_url=join_url,
        notes=notes,
        candidate_confirmed=False,
        reminder_sent=False,
        interviewer_links=[InterviewInterviewer(company_id=cid) for cid in interviewer_ids],
    )
    db.add(interview)
    await db.commit()
    interview = await interview_store.get_interview(db, interview.id)

    candidate = application.candidate
    event = InterviewScheduled(
        interview_id=interview.id,
        recipient=candidate.email if candidate else None,
        scheduled_time=interview.scheduled_time,
        duration=interview.duration,
        meeting_type=interview.meeting_type,
        location=interview.location,
        join_url=interview.join_url,
        notes=interview.notes,
    )
    return interview, [event]


async def update_interview_status(
    db: AsyncSession,
    company: CompanyPrincipal,
    interview_id: int,
    status: str,
    notes: Optional[str] = None,
) -> Interview:
    validate_interview_status(status)

    interview = await interview_store.get_interview(db, interview_id)
    if interview is None or not can_manage_interview(company, interview):
        raise NotFoundOrUnauthorizedError("Interview not found or unauthorized")

    interview.status = status
    if notes:
        interview.notes = notes
    await db.commit()
    interview = await interview_store.get_interview(db, interview.id)
    return interview


async def confirm_interview(
    db: AsyncSession,
    candidate: CandidatePrincipal,
    interview_id: int,
) -> Interview:
    """One-way: confirming again changes nothing."""
    interview = await interview_store.get_interview(db, interview_id)
    if interview is None or not can_confirm_interview(candidate, interview):
        raise NotFoundOrUnauthorizedError("Interview not found or unauthorized")

    if not interview.candidate_confirmed:
        interview.candidate_confirmed = True
        await db.commit()
        interview = await interview_store.get_interview(db, interview.id)
    return interview
