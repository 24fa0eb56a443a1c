#!/usr/bin/env python
"""Deployment entry point for SOAP Note Sync."""
import logging
import os
import sys

from soapnotes import create_app
from soapnotes.config import get_config

# Set up basic logging first
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    """Main application entry point with error handling."""
    try:
        logger.info("🚀 Starting SOAP Note Sync...")

        port = int(os.getenv("PORT", 8080))
        logger.info(f"🔌 Port from environment: {port}")
        logger.info(f"📍 Environment: {os.getenv('ENV', 'prod')}")
        logger.info(
            f"📄 Source sheet: {'SET' if os.getenv('SOURCE_SHEET_ID') else 'NOT SET'}"
        )

        app.run(
            host="0.0.0.0",
            port=port,
            debug=False,
            use_reloader=False,
        )

    except Exception as e:
        logger.error(f"❌ Startup Error: {str(e)}")
        logger.error("Full error details:", exc_info=True)
        sys.exit(1)


# App instance for Gunicorn
env = os.getenv("ENV", "prod")
config = get_config(env)
app = create_app(config)

if __name__ == "__main__":
    main()
