"""
ARQ Background Worker
Materialises reminder notifications for upcoming events
"""

import logging
import os

from arq.connections import RedisSettings
from arq.cron import cron

# Import models so SQLAlchemy can resolve relationships before any query
from . import models  # noqa: F401
from .config import REDIS_URL
from .database import SessionLocal
from .domain.reminders.service import generate_reminders

logger = logging.getLogger(__name__)


def get_redis_settings() -> RedisSettings:
    """Worker connection from REDIS_URL (rediss:// enables TLS), localhost otherwise"""
    settings = RedisSettings.from_dsn(REDIS_URL or "redis://localhost:6379")
    settings.conn_timeout = 15
    settings.conn_retry_delay = 1
    return settings


async def generate_reminders_task(ctx):
    """Hourly cron job: store reminders for events of the coming week"""
    logger.info(f"🔔 Starting reminder generation (job {ctx.get('job_id', 'unknown')})")

    db = SessionLocal()
    try:
        summary = generate_reminders(db)
        logger.info(f"✅ Reminder generation complete: {summary}")
        return summary
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Reminder generation failed: {str(e)}")
        raise
    finally:
        db.close()


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [generate_reminders_task]
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "10"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "300"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))

    health_check_interval = 60
    max_tries = 3

    cron_jobs = [
        cron(generate_reminders_task, minute=0),  # every hour on the hour
    ]

    logger.info(f"🔧 ARQ Worker configured: max_jobs={max_jobs}, timeout={job_timeout}s")
