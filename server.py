"""
Quiz Grading Server

FastAPI server for the quiz attempt & grading engine:
- Student flow: start/resume, autosave, submit, results
- Grader flow: attempt list with statistics, manual grading, finalize
- Storage via AgentFS KV (or in-memory for development)
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quiz_grading import __version__
from quiz_grading import app_state
from quiz_grading.config import get_config
from quiz_grading.logger import configure_logging, get_logger
from quiz_grading.router import register_error_handlers, router as grading_router

logger = get_logger("server")


# =============================================================================
# APP
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle."""
    config = get_config()
    configure_logging(config.log_level)
    logger.info(f"Starting Quiz Grading (backend={config.storage_backend.value})")
    await app_state.get_service()
    yield
    await app_state.close_service()
    logger.info("Quiz Grading stopped")


app = FastAPI(
    title="Quiz Grading",
    description="Quiz attempt lifecycle and grading engine",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
)

register_error_handlers(app)
app.include_router(grading_router)


@app.get("/")
async def root():
    """Basic info."""
    return {"status": "ok", "service": "quiz-grading", "version": __version__}


@app.get("/health")
async def health_check():
    """Health check."""
    config = get_config()
    return {
        "status": "healthy",
        "storage_backend": config.storage_backend.value,
        "service_ready": app_state.service is not None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
