import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from uptask import __version__, config
from uptask.auth.routes import router as auth_router
from uptask.database import Base, engine
from uptask.errors import register_exception_handlers
from uptask.routes.notes import router as notes_router
from uptask.routes.projects import router as projects_router
from uptask.routes.team import router as team_router

# Configure logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="UpTask API",
    description="Project management with teams, tasks, status tracking and notes",
    version=__version__,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(team_router)
app.include_router(notes_router)


@app.on_event("startup")
def create_tables():
    """Create any missing tables."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"UpTask API {__version__} started (environment: {config.ENVIRONMENT})")


@app.get("/health")
def health_check():
    return {"status": "healthy"}
