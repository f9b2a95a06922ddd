"""Recruiter login and password reset"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, ConfigDict, Field

from jobboard.config import get_settings
from jobboard.database import get_db
from jobboard.errors import DependencyError, ValidationError
from jobboard.middleware.auth import create_company_token
from jobboard.middleware.rate_limit import LOGIN_LIMIT, PASSWORD_RESET_LIMIT, limiter
from jobboard.models.company import Company
from jobboard.services import email_templates
from jobboard.services.notifier import Notifier, get_notifier
from jobboard.services.otp_store import ExpiringStore, get_otp_store
from jobboard.services.password_reset import PasswordResetService, find_company_by_email, reset_password
from jobboard.utils.logger import get_logger

router = APIRouter()
logger = get_logger("auth")


class LoginRequest(BaseModel):
    email: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    otp: str
    new_password: str = Field(alias="newPassword")


def get_password_reset_service(store: ExpiringStore = Depends(get_otp_store)) -> PasswordResetService:
    settings = get_settings()
    return PasswordResetService(store, settings.otp_ttl_seconds, settings.otp_max_attempts)


@router.post("/companies/login")
@limiter.limit(LOGIN_LIMIT)
async def login_company(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Company).where(Company.email == data.email))
    company = result.scalar_one_or_none()
    if company is None or not company.verify_password(data.password):
        raise ValidationError("Invalid email or password")

    return {
        "success": True,
        "company": company.to_dict(),
        "token": create_company_token(company.id),
    }


@router.post("/auth/forgot-password")
@limiter.limit(PASSWORD_RESET_LIMIT)
async def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    service: PasswordResetService = Depends(get_password_reset_service),
    notifier: Notifier = Depends(get_notifier),
):
    company = await find_company_by_email(db, data.email)
    code = await service.issue(company.email)

    settings = get_settings()
    html = email_templates.password_reset(code, settings.otp_ttl_seconds // 60, settings.brand_name)
    # The code is useless unless it arrives, so here a failed send is the request's failure
    if not await notifier.send_email(company.email, "Password Reset OTP", html):
        raise DependencyError("Error sending OTP")

    return {"success": True, "message": "OTP sent to your email"}


@router.post("/auth/reset-password")
@limiter.limit(PASSWORD_RESET_LIMIT)
async def reset_password_route(
    request: Request,
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    company = await reset_password(db, service, data.email, data.otp, data.new_password)
    logger.info(f"Password reset for company {company.id}")
    return {"success": True, "message": "Password reset successful"}
