import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fraudlink.db.neo4j_connector import close_driver
from fraudlink.logging_setup import setup_logging
from fraudlink.services.graph import ensure_schema

# Routers
from fraudlink.api.routers.persons import router as persons_router
from fraudlink.api.routers.transfers import router as transfers_router
from fraudlink.api.routers.relationships import router as relationships_router

setup_logging(
    level=os.getenv("FRAUDLINK_LOG_LEVEL", "INFO"),
    format_type=os.getenv("FRAUDLINK_LOG_FORMAT", "standard"),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Optionally bootstrap the schema; always close the Neo4j driver on shutdown."""
    if os.getenv("FRAUDLINK_ENSURE_SCHEMA") == "1":
        ensure_schema()
    try:
        yield
    finally:
        close_driver()
        logger.info("Neo4j driver closed")


app = FastAPI(title="Fraudlink", version="0.1", lifespan=lifespan)

app.include_router(persons_router)
app.include_router(transfers_router)
app.include_router(relationships_router)
