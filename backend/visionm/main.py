import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from visionm import __version__
from visionm.core.config import CORS_ORIGINS
from visionm.core.database import client, ensure_indexes
from visionm.routes import (
    profile_router,
    companies_router,
    workspace_requests_router,
    invites_router,
    projects_router,
    datasets_router,
    accounts_router,
)

# Logging setup
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create app
app = FastAPI(
    title="VisionM Workspace API",
    description="Workspace membership, invites and dataset ingestion",
    version=__version__,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(profile_router, prefix="/api")
app.include_router(companies_router, prefix="/api")
app.include_router(workspace_requests_router, prefix="/api")
app.include_router(invites_router, prefix="/api")
app.include_router(projects_router, prefix="/api")
app.include_router(datasets_router, prefix="/api")
app.include_router(accounts_router, prefix="/api")

# Endpoints whose envelope flag is `ok` rather than `success`
OK_ENVELOPE_PATHS = {
    "/api/validate-invite",
    "/api/accept-invite",
    "/api/create-company",
}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    flag = "ok" if request.url.path in OK_ENVELOPE_PATHS else "success"
    fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
    fields = [f for f in fields if f]
    message = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={flag: False, "error": message, "code": "VALIDATION_ERROR"},
    )


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "version": __version__}


@app.on_event("startup")
async def startup_db_client():
    logger.info(f"Starting VisionM Workspace API v{__version__}")
    try:
        await ensure_indexes()
    except Exception as e:
        logger.error(f"Index creation failed: {e}")


@app.on_event("shutdown")
async def shutdown_db_client():
    client.close()
