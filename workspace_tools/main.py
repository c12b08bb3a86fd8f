"""Entry point serving the ID card OCR API with uvicorn."""

import uvicorn

from workspace_tools.api.app import app
from workspace_tools.utils.config import load_config
from workspace_tools.utils.logger import setup_logging


def main() -> None:
    """Serve the API on the configured host and port."""
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run(app, host=config.api_host, port=config.api_port)


if __name__ == "__main__":
    main()
