from datetime import timedelta
from functools import lru_cache
from typing import Optional
import time

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import httpx
import jwt

from jobboard.config import get_settings
from jobboard.database import get_db
from jobboard.models.company import Company
from jobboard.services.guard import CandidatePrincipal, CompanyPrincipal, Principal
from jobboard.utils.dates import utcnow
from jobboard.utils.logger import get_logger

logger = get_logger("auth")

_JWKS_CACHE_TTL_SECONDS = 6 * 3600  # 6 hours


def _bearer(authorization: Optional[str]) -> Optional[str]:
    """Token from "Bearer <token>", or None when the header is absent/malformed."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None
    return parts[1]


# ---------------------------------------------------------------------------
# Company tokens (issued by this service at login)
# ---------------------------------------------------------------------------

def create_company_token(company_id: int) -> str:
    settings = get_settings()
    payload = {
        "id": company_id,
        "exp": utcnow() + timedelta(days=settings.company_token_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_company_token(token: str) -> int:
    try:
        payload = jwt.decode(token, get_settings().jwt_secret, algorithms=["HS256"])
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    company_id = payload.get("id")
    if not isinstance(company_id, int):
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    return company_id


async def _load_company(db: AsyncSession, token: str) -> Company:
    company = await db.get(Company, decode_company_token(token))
    if company is None:
        raise HTTPException(status_code=401, detail="Not authorized, company no longer exists")
    return company


async def get_current_company(
    token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Company:
    """
    Company-only routes. The token travels in the `token` header, or as a
    bearer token.
    """
    raw = token or _bearer(authorization)
    if not raw:
        raise HTTPException(status_code=401, detail="Not authorized, Login Again")
    return await _load_company(db, raw)


async def get_company_principal(company: Company = Depends(get_current_company)) -> CompanyPrincipal:
    return CompanyPrincipal(id=company.id)


# ---------------------------------------------------------------------------
# Candidate tokens (issued by the external identity provider)
# ---------------------------------------------------------------------------

class IdentityVerifier:
    """
    Verifies identity-provider JWTs and returns the subject id.

    HS256 tokens are checked against a shared secret; RS256/ES256 tokens
    against the provider's JWKS, cached for six hours to pick up key
    rotations.
    """

    def __init__(self, secret: str = "", jwks_url: str = "", timeout: float = 5.0):
        self.secret = secret
        self.jwks_url = jwks_url
        self.timeout = timeout
        self._public_key = None
        self._public_key_cached_at = 0.0

    async def _get_public_key(self):
        now = time.monotonic()
        if self._public_key is not None and (now - self._public_key_cached_at) < _JWKS_CACHE_TTL_SECONDS:
            return self._public_key

        logger.info(f"[Auth] Fetching JWKS from: {self.jwks_url}")
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self.jwks_url)
            response.raise_for_status()
            jwks = response.json()

        keys = jwks.get('keys') or []
        if not keys:
            raise ValueError("No keys found in JWKS")
        key_data = keys[0]

        from jwt.algorithms import RSAAlgorithm, ECAlgorithm
        if key_data.get('kty') == 'RSA':
            public_key = RSAAlgorithm.from_jwk(key_data)
        elif key_data.get('kty') == 'EC':
            public_key = ECAlgorithm.from_jwk(key_data)
        else:
            raise ValueError(f"Unsupported key type: {key_data.get('kty')}")

        self._public_key = public_key
        self._public_key_cached_at = time.monotonic()
        return public_key

    async def verify(self, token: str) -> str:
        try:
            algorithm = jwt.get_unverified_header(token).get('alg', 'HS256')
            if algorithm == 'HS256':
                if not self.secret:
                    raise HTTPException(status_code=500, detail="Server misconfiguration: identity secret not set")
                key, algorithms = self.secret, ['HS256']
            else:
                if not self.jwks_url:
                    raise HTTPException(status_code=401, detail="Invalid token")
                key, algorithms = await self._get_public_key(), ['RS256', 'ES256']

            payload = jwt.decode(
                token, key, algorithms=algorithms,
                options={"verify_exp": True, "verify_aud": False},
            )
        except jwt.ExpiredSignatureError:
            raise HTTPException(status_code=401, detail="Token expired. Please sign in again.")
        except jwt.InvalidTokenError:
            raise HTTPException(status_code=401, detail="Invalid token")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[Auth] JWKS unavailable: {type(e).__name__}: {e}")
            raise HTTPException(status_code=401, detail="Invalid token")

        subject = payload.get('sub')
        if not subject:
            raise HTTPException(status_code=401, detail="Invalid token")
        return subject


@lru_cache()
def get_identity_verifier() -> IdentityVerifier:
    settings = get_settings()
    return IdentityVerifier(settings.candidate_jwt_secret, settings.candidate_jwks_url)


async def get_candidate_principal(
    authorization: Optional[str] = Header(None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> CandidatePrincipal:
    token = _bearer(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")
    return CandidatePrincipal(id=await verifier.verify(token))


# ---------------------------------------------------------------------------
# Routes open to both sides
# ---------------------------------------------------------------------------

async def get_principal(
    token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Principal:
    """
    Resolve the caller once. A `token` header always means a company; a
    bearer token alone means a candidate. A failed company token is a 401,
    never a second attempt as a candidate.
    """
    if token:
        company = await _load_company(db, token)
        return CompanyPrincipal(id=company.id)

    bearer = _bearer(authorization)
    if bearer:
        return CandidatePrincipal(id=await verifier.verify(bearer))

    raise HTTPException(status_code=401, detail="Not authorized, Login Again")
