"""Main entry point for Flex Shipping Ledger."""

from __future__ import annotations

import logging
import sys

from src.core.config import get_config_dir, get_settings
from src.db.session import init_database


def setup_exception_handler() -> None:
    """Set up global exception handler for unhandled exceptions."""
    logger = logging.getLogger(__name__)

    def handle_exception(exc_type, exc_value, exc_traceback):
        """Handle uncaught exceptions."""
        if issubclass(exc_type, KeyboardInterrupt):
            # Allow Ctrl+C to exit normally
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_traceback),
        )

    sys.excepthook = handle_exception


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging."""
    log_dir = get_config_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "ledger.log"

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
    )


def main() -> int:
    """Application entry point."""
    settings = get_settings()
    setup_logging(settings.log_level)
    setup_exception_handler()
    logger = logging.getLogger(__name__)

    logger.info("Starting Flex Shipping Ledger")
    logger.info(f"Config dir: {get_config_dir()}")
    logger.info(f"Mock mode: {settings.marketplace.mock_mode}")

    try:
        init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.exception("Failed to initialize database")
        print(f"Error: Failed to initialize database: {e}", file=sys.stderr)
        return 1

    from src.web.server import create_app

    app = create_app(settings)
    logger.info(f"Serving API on http://{settings.web.host}:{settings.web.port}")
    app.run(host=settings.web.host, port=settings.web.port, debug=False, use_reloader=False, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
