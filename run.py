#!/usr/bin/env python
"""Local development server for SOAP Note Sync (``python run.py``)."""
import os

from soapnotes import create_app
from soapnotes.config import get_config

if __name__ == "__main__":
    config = get_config(os.getenv("ENV", "dev"))
    app = create_app(config)

    # The reloader forks a second process; keep the batch scheduler in one.
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", 5000)),
        debug=config.DEBUG,
        use_reloader=config.DEBUG and not config.ENABLE_SCHEDULER,
    )
