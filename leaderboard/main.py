"""
Leaderboard - Application Entry Point
=====================================

Bootstrap
---------
- Config validation
- HTTP application construction (store opens in the app lifespan)
- uvicorn server lifecycle
- Logging shutdown
"""

import sys

import uvicorn

from leaderboard.core.config.config import Config
from leaderboard.core.logging.logger import get_logger, shutdown_logging

logger = get_logger(__name__)


# ============================================================================
# Application Entrypoint
# ============================================================================

def run() -> None:
    """
    Leaderboard server entry point.

    Lifecycle:
        1. Validate configuration
        2. Build the FastAPI app
        3. Serve until interrupted; the app lifespan opens and closes the store
    """
    logger.info("========== LEADERBOARD INITIALIZATION START ==========")

    try:
        Config.validate()
        logger.info("✓ Configuration validated", extra=Config.get_config_summary())
    except Exception as exc:
        logger.critical(f"Configuration validation failed: {exc}")
        sys.exit(1)

    # Imported late so that a bad configuration fails before the API loads
    from leaderboard.api.app import create_app

    try:
        app = create_app()
        logger.info(
            f"Starting leaderboard API on {Config.API_HOST}:{Config.API_PORT}",
            extra={"path": Config.DATABASE_PATH},
        )
        uvicorn.run(
            app,
            host=Config.API_HOST,
            port=Config.API_PORT,
            log_config=None,
        )
    except KeyboardInterrupt:
        logger.info("Manual shutdown via keyboard interrupt.")
    except Exception as exc:
        logger.critical(f"Fatal startup error: {exc}", exc_info=True)
        sys.exit(1)
    finally:
        logger.info("========== SHUTDOWN COMPLETE ==========")
        shutdown_logging()


if __name__ == "__main__":
    run()
