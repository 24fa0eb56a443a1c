import logging

from flask import Flask


def setup_logging(app: Flask) -> None:
    """Configure basic logging for the application."""
    level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s in %(module)s: %(message)s",
    )
    # Google's discovery client is chatty at INFO
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    app.logger.setLevel(level)
