from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
import logging

# Configure basic logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Award itinerary assembly over reconciled multi-source availability",
    version="1.0.0"
)

# CORS setup: open in development, explicit list in production
origins = ["*"]

if settings.env == "production":
    origins = []
    if settings.cors_origins:
        for o in settings.cors_origins.split(","):
            o = o.strip()
            if o and o not in origins:
                origins.append(o)

logger.info(f"CORS origins: {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from app.routers import search, system
app.include_router(search.router)
app.include_router(system.router)

@app.get("/health")
def health_check():
    """
    Basic health check endpoint to verify service is running.
    """
    return {"status": "ok", "environment": settings.env}
