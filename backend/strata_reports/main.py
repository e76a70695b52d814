import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from strata_reports.config import settings
from strata_reports.exceptions import AppError
from strata_reports.routers import reports_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Strata Reports")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Translate domain exceptions into JSON error responses."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(reports_router.router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
