import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from league_engine import config
from league_engine.database import init_db
from league_engine.logging_config import setup_logging
from league_engine.routes import match_results, rosters, schedule, standings

APP_NAME = "League Engine API"

logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(schedule.router, prefix="/api", tags=["schedule"])
app.include_router(match_results.router, prefix="/api", tags=["match-results"])
app.include_router(standings.router, prefix="/api", tags=["standings"])
app.include_router(rosters.router, prefix="/api", tags=["rosters"])


@app.on_event("startup")
def on_startup():
    setup_logging(config.LOG_LEVEL)
    init_db()  # Use centralized init_db() which imports models and creates tables
    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info("%s started with %d routes", APP_NAME, route_count)


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
