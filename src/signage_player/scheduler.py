"""
Background Job Scheduler for Signage Player.

This module provides APScheduler-based background scheduling for the event
refresh. It uses BackgroundScheduler (NOT BlockingScheduler) so that jobs
run on worker threads while the Flask server keeps answering requests.

The refresh job runs every FETCH_INTERVAL_S seconds. The first refresh is
not scheduled here; create_app() runs it synchronously before serving.

Example:
    from signage_player.scheduler import init_scheduler, register_jobs

    scheduler = init_scheduler()
    register_jobs(scheduler, refresher, interval_seconds=60)
    scheduler.start()
"""

from typing import Any, Dict, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from .logger import setup_logger
from .services.event_refresher import EventRefresher

logger = setup_logger(__name__)


REFRESH_JOB_ID = 'event_refresh'

# Global scheduler instance
_scheduler: Optional[BackgroundScheduler] = None


def init_scheduler(start: bool = False) -> BackgroundScheduler:
    """
    Initialize the background job scheduler.

    Jobs are NOT added here - they are added separately by register_jobs().
    The cache lives in memory, so jobs use the in-memory job store.

    Args:
        start: Whether to start the scheduler immediately (default: False)

    Returns:
        Configured BackgroundScheduler instance
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already initialized and running")
        return _scheduler

    jobstores = {
        'default': MemoryJobStore()
    }

    # One worker is enough: a single job that never overlaps itself
    executors = {
        'default': ThreadPoolExecutor(max_workers=1)
    }

    job_defaults = {
        'coalesce': True,  # Combine missed runs into a single execution
        'max_instances': 1,  # Never run two refreshes at once
        'misfire_grace_time': 30,
    }

    scheduler = BackgroundScheduler(
        jobstores=jobstores,
        executors=executors,
        job_defaults=job_defaults,
        timezone='UTC',
    )

    scheduler.add_listener(_on_job_executed, EVENT_JOB_EXECUTED)
    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)

    if start:
        scheduler.start()
        logger.info("Scheduler started")

    _scheduler = scheduler
    return scheduler


def shutdown_scheduler(wait: bool = True) -> None:
    """
    Shutdown the scheduler.

    Args:
        wait: Whether to wait for a running refresh to complete (default: True)
    """
    global _scheduler

    if _scheduler is not None:
        logger.info("Shutting down scheduler...")
        if _scheduler.running:
            _scheduler.shutdown(wait=wait)
        _scheduler = None
        logger.info("Scheduler shutdown complete")


def _on_job_executed(event: JobExecutionEvent) -> None:
    """Log successful job execution."""
    logger.debug(f"Job '{event.job_id}' executed successfully")


def _on_job_error(event: JobExecutionEvent) -> None:
    """Log job execution errors."""
    logger.error(
        f"Job '{event.job_id}' failed with exception: {event.exception}",
        exc_info=(type(event.exception), event.exception, event.exception.__traceback__),
    )


def register_jobs(
    scheduler: BackgroundScheduler,
    refresher: EventRefresher,
    interval_seconds: int,
) -> None:
    """
    Register the periodic event refresh job.

    Args:
        scheduler: BackgroundScheduler instance (initialized, not started)
        refresher: EventRefresher to run on each tick
        interval_seconds: Seconds between refreshes
    """
    scheduler.add_job(
        refresher.refresh,
        trigger='interval',
        seconds=interval_seconds,
        id=REFRESH_JOB_ID,
        name='Refresh event feed',
        replace_existing=True,
    )
    logger.info(f"Added job '{REFRESH_JOB_ID}' with trigger 'interval': every {interval_seconds}s")


def list_jobs(scheduler: Optional[BackgroundScheduler] = None) -> Dict[str, Any]:
    """
    List all scheduled jobs.

    Args:
        scheduler: BackgroundScheduler instance (uses global if not provided)

    Returns:
        Dictionary with job information
    """
    sched = scheduler or _scheduler

    if sched is None:
        return {'running': False, 'job_count': 0, 'jobs': []}

    jobs = []
    for job in sched.get_jobs():
        next_run_time = getattr(job, 'next_run_time', None)
        jobs.append({
            'id': job.id,
            'name': job.name,
            'next_run_time': next_run_time.isoformat() if next_run_time else None,
            'trigger': str(job.trigger),
        })

    return {
        'running': sched.running,
        'job_count': len(jobs),
        'jobs': jobs,
    }
