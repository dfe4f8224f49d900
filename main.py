#!/usr/bin/env python3

"""
Main application entry point for the Memory Timeline cross-reference engine.

Architecture: FastAPI application wrapping the embedding, analysis, pattern and
tag-suggestion services around the journal's event database.
Key Features: Lifecycle management, database health checks, error handling, CORS configuration.
"""

import asyncio
import sys

# Add this block to switch asyncio event loop policy on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from memory_timeline.api.http import router as http_router
from memory_timeline.config import settings
from memory_timeline.db import check_db_connection, close_db, init_db
from memory_timeline.services.engine import TimelineEngine
from memory_timeline.services.llm_service import (
    close_all_llm_clients,
    get_llm_client,
    initialize_all_llm_clients,
)
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    try:
        initialize_all_llm_clients()
        logger.info("LLM clients initialized.")

        logger.info("Initializing database...")
        await init_db()
        logger.info("Database initialization complete.")

        logger.info("Checking database connectivity...")
        if await check_db_connection():
            logger.info("Database connectivity confirmed.")
        else:
            logger.critical("Database connectivity check failed.")
            raise SystemExit("Database connection failed.")

        app.state.engine = TimelineEngine.from_settings(settings, get_llm_client())
    except Exception as e:
        logger.critical(f"Startup error: {e}")
        raise SystemExit(f"Startup failed: {e}") from e

    logger.info("Memory Timeline API startup successful.")
    yield

    logger.info("Memory Timeline API shutdown...")
    await app.state.engine.close()
    await close_all_llm_clients()
    await close_db()
    logger.info("Shutdown complete.")


def create_app():
    app = FastAPI(title="Memory Timeline Cross-Reference API", lifespan=lifespan)

    app.include_router(http_router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()


def main():
    port = int(settings.server_port)
    host = settings.server_host

    logger.info(f"Starting Memory Timeline API server on {host}:{port}")

    try:
        uvicorn.run(app, host=host, port=port)
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
