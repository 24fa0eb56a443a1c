# soapnotes/__init__.py
"""SOAP Note Sync: form responses to per-client Google Docs session logs."""
import logging

from flask import Flask

from soapnotes.api import register_blueprints
from soapnotes.cli import register_cli_commands
from soapnotes.config import Config
from soapnotes.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: Config, soap_note_service=None) -> Flask:
    """Application factory.

    ``soap_note_service`` replaces the Google-backed service (tests pass a
    service wired to in-memory fakes).
    """
    app = Flask(__name__)

    app.config.from_object(config)
    app.soap_config = config

    setup_logging(app)

    if soap_note_service is not None:
        app.extensions["soap_notes"] = soap_note_service

    register_cli_commands(app)
    register_blueprints(app)

    if not config.TESTING:
        try:
            from soapnotes.services.scheduler import init_scheduler

            init_scheduler(app)
        except Exception as e:
            logger.warning(f"Failed to initialize scheduler: {str(e)}")

    @app.route("/health")
    def health():
        from soapnotes.services.scheduler import get_scheduler_status

        return {
            "status": "healthy",
            "service": "soap-note-sync",
            "sheet_configured": bool(config.SOURCE_SHEET_ID),
            "sheet_name": config.SHEET_NAME,
            "scheduler": get_scheduler_status(),
            "environment": config.ENV,
        }, 200

    logger.info("✅ SOAP Note Sync initialized successfully")
    return app
