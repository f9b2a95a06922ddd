from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from jobboard.config import get_settings
from jobboard.database import init_db
from jobboard.errors import DependencyError, JobBoardError
from jobboard.middleware.correlation import CorrelationFilter, CorrelationMiddleware
from jobboard.middleware.rate_limit import limiter
from jobboard.routes import applications, auth, candidates, interviews, messages
from jobboard.services.otp_store import MemoryExpiringStore, RedisExpiringStore
from jobboard.services.redis_client import close_redis, get_redis, init_redis
from jobboard.utils import metrics
from jobboard.utils.logger import logger

settings = get_settings()

for handler in logger.handlers:
    handler.addFilter(CorrelationFilter())

app = FastAPI(title=settings.app_name, version=settings.app_version)
app.state.limiter = limiter
app.state.otp_store = MemoryExpiringStore()
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "token", "X-Correlation-ID"],
)
app.add_middleware(CorrelationMiddleware)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.app_name} backend...")
    await init_db()
    await init_redis(settings.redis_url)
    if get_redis() is not None:
        app.state.otp_store = RedisExpiringStore(get_redis())
    logger.info(f"Backend ready at http://{settings.backend_host}:{settings.backend_port}")


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.otp_store.close()
    await close_redis()


# Every failure leaves as {"success": false, "message": ...}

@app.exception_handler(JobBoardError)
async def jobboard_error_handler(request: Request, exc: JobBoardError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid {field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "database.error",
        extra={"path": request.url.path, "error": str(exc)[:500], "error_type": type(exc).__name__},
    )
    error = DependencyError()
    return JSONResponse(status_code=error.status_code, content={"success": False, "message": error.message})


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/metrics")
async def get_metrics():
    return metrics.get_snapshot()


@app.get("/")
async def root():
    return {"status": "ok", "message": "API Working"}


app.include_router(auth.router, prefix="/api", tags=["Authentication"])
app.include_router(applications.router, prefix="/api/applications", tags=["Applications"])
app.include_router(interviews.router, prefix="/api/interviews", tags=["Interviews"])
app.include_router(messages.router, prefix="/api/messages", tags=["Messages"])
app.include_router(candidates.router, prefix="/api/users", tags=["Candidates"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "jobboard.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.debug
    )
