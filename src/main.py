"""Application entry point for the cédula reader API server."""

import uvicorn

from src.api.app import app
from src.utils.config import load_config
from src.utils.logger import setup_logging


def main(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI application server.

    Args:
        host: Interface to bind.
        port: Port to listen on.
    """
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
