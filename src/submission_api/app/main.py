"""FastAPI application entry point for the Submission Intake API."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from submission_api.app.config import get_settings
from submission_api.app.errors import register_exception_handlers
from submission_api.app.routes.submissions import router as submissions_router
from submission_api.infra.database import init_db

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database on startup."""
    await init_db()
    logger.info("Submission API started (environment=%s)", settings.environment)
    yield


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="Submission Intake API",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS middleware: all origins in debug mode so n8n and local tools can connect
_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    client = request.client.host if request.client else "-"
    response = await call_next(request)
    logger.info("%s %s from %s -> %d", request.method, request.url.path, client, response.status_code)
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
app.include_router(submissions_router)


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {"status": "ok", "service": "submission-api"}


@app.get("/", tags=["health"])
async def api_info():
    """API name, version and an index of the submission endpoints."""
    return {
        "success": True,
        "message": "Submission Intake API",
        "version": API_VERSION,
        "environment": settings.environment,
        "endpoints": {
            "health": "GET /health",
            "submissions": {
                "list": "GET /api/submissions",
                "create": "POST /api/submissions",
                "get": "GET /api/submissions/{id}",
                "replace": "PUT /api/submissions/{id}",
                "updateStatus": "PATCH /api/submissions/{id}/status",
                "delete": "DELETE /api/submissions/{id}",
                "byType": "GET /api/submissions/type/{type}",
                "bulkStatus": "PATCH /api/submissions/bulk/status",
                "dashboard": "GET /api/submissions/stats/dashboard",
            },
        },
    }


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "submission_api.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
