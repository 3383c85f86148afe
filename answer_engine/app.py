"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from answer_engine.logging_setup import setup_console_logging
from answer_engine.routes import answer_keys, sessions
from answer_engine.services.session_service import shutdown_registry

setup_console_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    shutdown_registry()


app = FastAPI(title="Answer Engine API", lifespan=lifespan)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


# Include routers
app.include_router(sessions.router)
app.include_router(answer_keys.router)
