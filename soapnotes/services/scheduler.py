# soapnotes/services/scheduler.py
"""
Scheduler service for the periodic SOAP note batch run.
Picks up rows whose submit trigger was missed.
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Flask

logger = logging.getLogger(__name__)

scheduler = None
_lock_file = None

BATCH_JOB_ID = "soap_batch_run"


def batch_run_job(app: Flask):
    """Background job: process every unmarked row."""
    try:
        with app.app_context():
            from soapnotes.api.triggers import get_soap_note_service

            logger.debug("🔄 Starting scheduled SOAP batch run...")
            result = get_soap_note_service().run_batch()
            if result.error:
                logger.error(f"❌ Scheduled batch run aborted: {result.error}")
            elif result.outcomes:
                logger.info(
                    f"📊 Scheduled batch: {result.written} written, "
                    f"{result.skipped} skipped, {result.failed} failed"
                )
    except Exception as e:
        logger.error(f"❌ Scheduled batch run failed: {str(e)}")


def init_scheduler(app: Flask):
    """Initialize the background scheduler.

    In multi-worker environments (like Gunicorn with 4 workers),
    we only want ONE worker to run the scheduler to avoid duplicate notes.
    """
    global scheduler, _lock_file

    if scheduler is not None:
        logger.info("⏭️ Scheduler already initialized, skipping")
        return

    config = app.soap_config
    if not config.ENABLE_SCHEDULER:
        logger.info("⏭️ Scheduler disabled via ENABLE_SCHEDULER env var")
        return

    # Only one worker may hold the lock and run the scheduler; the handle stays open for the process lifetime
    import fcntl
    import os
    import tempfile

    lock_file_path = os.path.join(tempfile.gettempdir(), "soap_notes_scheduler.lock")

    try:
        _lock_file = open(lock_file_path, "w")
        fcntl.flock(_lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        logger.info("🔒 Acquired scheduler lock - this worker will run scheduled jobs")
    except (IOError, OSError):
        logger.info("⏭️ Another worker is already running the scheduler, skipping initialization")
        return

    try:
        scheduler = BackgroundScheduler(daemon=True)

        interval_minutes = config.AUTO_BATCH_INTERVAL_MINUTES
        scheduler.add_job(
            func=batch_run_job,
            args=[app],
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=BATCH_JOB_ID,
            name="Process unmarked SOAP note rows",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.debug(f"📅 Scheduled SOAP batch run every {interval_minutes} minutes")

        scheduler.start()
        logger.info("✅ Background scheduler started successfully (running in this worker only)")

        import atexit

        atexit.register(lambda: scheduler.shutdown() if scheduler else None)

    except Exception as e:
        logger.error(f"❌ Failed to initialize scheduler: {str(e)}")


def get_scheduler_status():
    """Get current scheduler status and jobs."""
    if not scheduler:
        return {"status": "not_initialized"}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append(
            {
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat()
                if job.next_run_time
                else None,
                "trigger": str(job.trigger),
            }
        )

    return {"status": "running" if scheduler.running else "stopped", "jobs": jobs}
