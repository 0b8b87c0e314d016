"""Scheduler configuration using SQLAlchemy job store."""

from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MAX_INSTANCES
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from .config.logging import get_logger
from .config.settings import get_settings

logger = get_logger(__name__)

REBALANCE_JOB_ID = "portfolio_rebalance"


def create_scheduler() -> BackgroundScheduler:
    """
    Create a BackgroundScheduler whose jobs live in the application database.

    Returns:
        Configured BackgroundScheduler instance
    """
    settings = get_settings()

    jobstores = {
        "default": SQLAlchemyJobStore(
            url=settings.get_database_url(), tablename="apscheduler_jobs"
        )
    }

    # One worker, so rebalance runs never overlap
    executors = {"default": ThreadPoolExecutor(max_workers=1)}

    job_defaults = {
        "coalesce": True,  # run a missed rebalance once, not once per missed tick
        "max_instances": 1,
        "misfire_grace_time": 300,
    }

    scheduler = BackgroundScheduler(
        jobstores=jobstores,
        executors=executors,
        job_defaults=job_defaults,
        timezone=settings.scheduler_timezone,
    )

    scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
    scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)
    scheduler.add_listener(job_skipped_listener, EVENT_JOB_MAX_INSTANCES)

    return scheduler


def job_executed_listener(event):
    """Log successful job executions."""
    logger.info(
        "Job executed",
        job_id=event.job_id,
        scheduled_run_time=str(event.scheduled_run_time),
    )


def job_error_listener(event):
    """Log job execution errors."""
    logger.error(
        "Job crashed",
        job_id=event.job_id,
        error=str(event.exception),
        traceback=event.traceback,
    )


def job_skipped_listener(event):
    logger.warning("Job skipped, previous run still active", job_id=event.job_id)


def get_global_scheduler() -> BackgroundScheduler:
    """
    Get or create the global scheduler instance.

    Returns:
        Global BackgroundScheduler instance
    """
    if not hasattr(get_global_scheduler, "_scheduler"):
        get_global_scheduler._scheduler = create_scheduler()

    return get_global_scheduler._scheduler


def start_scheduler():
    """Start the global scheduler."""
    scheduler = get_global_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started with SQLAlchemy job store")


def shutdown_scheduler():
    """Shutdown the global scheduler."""
    scheduler = get_global_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler shutdown complete")


def add_rebalance_job(
    day_of_week: Optional[str] = None,
    hour: Optional[int] = None,
    minute: Optional[int] = None,
):
    """
    Add the portfolio rebalance job to the scheduler.

    Args:
        day_of_week: Cron day-of-week expression (default from settings, 'mon-fri')
        hour: Hour of the day in the scheduler timezone (default from settings)
        minute: Minute of the hour (default from settings)
    """
    settings = get_settings()
    day_of_week = day_of_week or settings.rebalance_cron_day_of_week
    hour = settings.rebalance_cron_hour if hour is None else hour
    minute = settings.rebalance_cron_minute if minute is None else minute

    scheduler = get_global_scheduler()

    # Referenced by module path so the SQLAlchemy job store can persist it
    scheduler.add_job(
        func="rebalancer.services.rebalance.service:run_scheduled_rebalance",
        trigger="cron",
        day_of_week=day_of_week,
        hour=hour,
        minute=minute,
        id=REBALANCE_JOB_ID,
        name="Portfolio Rebalance",
        replace_existing=True,
    )

    logger.info(
        "Added rebalance job",
        day_of_week=day_of_week,
        hour=hour,
        minute=minute,
        timezone=settings.scheduler_timezone,
    )


def list_scheduled_jobs() -> list:
    """Log and return all currently scheduled jobs."""
    jobs = get_global_scheduler().get_jobs()

    if not jobs:
        logger.info("No scheduled jobs")
        return []

    for job in jobs:
        logger.info(
            "Scheduled job",
            job_id=job.id,
            name=job.name,
            next_run_time=str(getattr(job, "next_run_time", None)),
        )
    return jobs
