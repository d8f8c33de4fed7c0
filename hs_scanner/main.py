"""Application entry point for the Customs Declaration Scanner API server."""

from pathlib import Path

import uvicorn

from hs_scanner.api.app import app
from hs_scanner.utils.config import load_config
from hs_scanner.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main(
    host: str = "0.0.0.0", port: int = 8000, config_path: Path | None = None
) -> None:
    """Start the FastAPI application server.

    Args:
        host: Interface to bind.
        port: Port to listen on.
        config_path: YAML configuration used by the server and every
            request it handles. Defaults to configs/config.yaml.
    """
    config = load_config(config_path)
    setup_logging(config.log_level)
    app.state.config_path = config_path
    logger.info("Serving scanner API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
