# projectionlab_mcp/main.py
import sys
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from . import config
from .projection import ProjectionError

log_theme = Theme({
    "logging.level.debug": "dim blue",
    "logging.level.info": "green",
    "logging.level.warning": "yellow",
    "logging.level.error": "bold red",
    "logging.level.critical": "bold red blink"
})

logger = logging.getLogger(__name__)


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    # stdout carries the MCP stdio transport, so logs go to stderr
    rich_console_for_logging = Console(theme=log_theme, stderr=True)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(
            console=rich_console_for_logging,
            rich_tracebacks=True,
            show_path=False,
            keywords=[]
        )],
        force=True,
    )


def main() -> None:
    configure_logging()
    from .server import projection_mcp_server, session

    if config.PROJECTIONLAB_DATA_FILE:
        try:
            loaded = session.load(config.PROJECTIONLAB_DATA_FILE)
            logger.info(f"Preloaded ProjectionLab export from {loaded}")
        except ProjectionError as e:
            logger.error(f"Could not preload {config.PROJECTIONLAB_DATA_FILE}: {e.message}")
            sys.exit(1)
    else:
        logger.info("No PROJECTIONLAB_DATA_FILE set; waiting for set_data_file.")

    logger.info(f"Starting {config.PROJECTIONLAB_SERVER_NAME} over stdio...")
    try:
        projection_mcp_server.run()
    except KeyboardInterrupt:
        logger.info("ProjectionLab server shutting down.")
    except Exception as e:
        logger.critical(f"ProjectionLab server exited with critical error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
