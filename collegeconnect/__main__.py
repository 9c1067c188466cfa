"""
collegeconnect.__main__ — Entry point for ``python -m collegeconnect``
======================================================================

Wiring:
1. Load .env (secrets, ``DATABASE_URL``).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Serve the FastAPI app with uvicorn (blocking).
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

from collegeconnect.config import load_config
from collegeconnect.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("collegeconnect")


def main() -> None:
    """Bootstrap the database and run the API server."""

    # 1. Environment variables (secrets).
    load_dotenv()

    if not os.getenv("JWT_SECRET"):
        logger.critical(
            "JWT_SECRET is not set.  "
            "Copy .env.example → .env and generate a secret."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config()
    logger.info("Config loaded — %s on port %d", cfg.app_name, cfg.api_port)

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)

    # 4. Serve (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting CollegeConnect API…")
    uvicorn.run(
        "collegeconnect.api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=cfg.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
