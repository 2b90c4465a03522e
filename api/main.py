# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Description: main.py
# -----------------------------------------------------------------------------
from fastapi import FastAPI

from api.routers import context, documents, health, search
from utility.logging_utils import configure_logging, get_logger

configure_logging()
logger = get_logger("api")

app = FastAPI(
    title="Proposal Knowledge Base API",
    description="Ingest company documents and retrieve relevant fragments for proposal drafting",
)

ROUTERS = (health.router, documents.router, search.router, context.router)
for router in ROUTERS:
    app.include_router(router)

logger.info("Routers mounted: %s", ", ".join(r.prefix for r in ROUTERS))
