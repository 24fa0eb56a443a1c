# soapnotes/config.py
"""Application configuration loaded from the environment."""
import logging
import os
from typing import Optional

from dotenv import load_dotenv

from soapnotes.exceptions import ConfigurationError
from soapnotes.models import NOTES_FOLDER_NAME, TARGET_DOC_NAME

load_dotenv()

logger = logging.getLogger(__name__)


class Config:
    """Base configuration."""

    # Environment
    ENV: str = os.getenv("ENV", "prod")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    TESTING: bool = False

    # Form responses spreadsheet
    SOURCE_SHEET_ID: str = os.getenv("SOURCE_SHEET_ID", "")
    SHEET_NAME: str = os.getenv("SHEET_NAME", "Form Responses 1")
    JOB_CODE_COLUMN_NAME: str = os.getenv("JOB_CODE_COLUMN_NAME", "Job Code")
    TIMESTAMP_COLUMN_NAME: str = os.getenv("TIMESTAMP_COLUMN_NAME", "Timestamp")
    UPLOAD_TIMESTAMP_COLUMN_NAME: str = os.getenv(
        "UPLOAD_TIMESTAMP_COLUMN_NAME", "Upload Timestamp"
    )

    # Shared Drive layout
    NOTES_FOLDER_NAME: str = os.getenv("NOTES_FOLDER_NAME", NOTES_FOLDER_NAME)
    TARGET_DOC_NAME: str = os.getenv("TARGET_DOC_NAME", TARGET_DOC_NAME)
    DRIVE_USE_DOMAIN_ADMIN_ACCESS: bool = (
        os.getenv("DRIVE_USE_DOMAIN_ADMIN_ACCESS", "true").lower() == "true"
    )

    # Dates in notes and document names
    SCRIPT_TIMEZONE: str = os.getenv("SCRIPT_TIMEZONE", "America/Los_Angeles")

    # Google service account (domain-wide delegation subject, optional)
    GOOGLE_DELEGATED_USER: Optional[str] = os.getenv("GOOGLE_DELEGATED_USER") or None

    # Trigger endpoints
    TRIGGER_SHARED_SECRET: str = os.getenv("TRIGGER_SHARED_SECRET", "")

    # Periodic batch run
    ENABLE_SCHEDULER: bool = os.getenv("ENABLE_SCHEDULER", "false").lower() == "true"
    AUTO_BATCH_INTERVAL_MINUTES: int = int(os.getenv("AUTO_BATCH_INTERVAL_MINUTES", "15"))

    def validate_required_config(self):
        """Validate that required configuration is present."""
        missing = []

        if not self.SOURCE_SHEET_ID:
            missing.append("SOURCE_SHEET_ID")

        has_credentials = (
            os.getenv("GOOGLE_CREDENTIALS_JSON")
            or os.getenv("GOOGLE_CREDENTIALS_JSON_B64")
            or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
        )
        if not has_credentials:
            missing.append(
                "GOOGLE_CREDENTIALS_JSON, GOOGLE_CREDENTIALS_JSON_B64 or GOOGLE_APPLICATION_CREDENTIALS"
            )

        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    ENV = "dev"


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    ENV = "test"
    DEBUG = True
    SOURCE_SHEET_ID = "test-sheet"
    SCRIPT_TIMEZONE = "America/Los_Angeles"
    ENABLE_SCHEDULER = False
    TRIGGER_SHARED_SECRET = ""


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    ENV = "prod"

    def __init__(self):
        super().__init__()
        try:
            self.validate_required_config()
        except ConfigurationError as e:
            logger.warning(f"⚠️ Configuration Warning: {str(e)}")


def get_config(env: str = None) -> Config:
    """Get configuration based on environment."""
    if env is None:
        env = os.getenv("ENV", "prod")

    configs = {
        "dev": DevelopmentConfig,
        "development": DevelopmentConfig,
        "test": TestingConfig,
        "testing": TestingConfig,
        "prod": ProductionConfig,
        "production": ProductionConfig,
    }

    config_class = configs.get(env.lower(), ProductionConfig)
    return config_class()
