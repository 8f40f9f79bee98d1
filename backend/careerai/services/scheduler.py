"""In-process scheduler for periodic maintenance tasks.

Runs as an asyncio task within the FastAPI process and fires every
registered task once a day at LOW_SKILL_SWEEP_HOUR:00 server time. Tasks
know nothing about the scheduler; they only implement ``run()``, so the admin
API can trigger the same work on demand.
"""
import asyncio
import logging
import traceback
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from careerai.config import settings
from careerai.database import async_session
from careerai.services.skill_notifier import run_low_skill_notification_sweep

logger = logging.getLogger(__name__)


class ScheduledTask(ABC):
    name: str = "task"

    @abstractmethod
    async def run(self) -> dict:
        """Do one unit of work and return a small summary."""


# Task registry - add new periodic tasks here
SCHEDULED_TASKS: list[ScheduledTask] = []


def register_task(cls):
    """Class decorator that registers one instance of the task."""
    SCHEDULED_TASKS.append(cls())
    return cls


@register_task
class LowSkillNotificationTask(ScheduledTask):
    name = "low-skill-notifications"

    def __init__(self, threshold: Optional[int] = None, session_factory=None):
        self.threshold = threshold
        self.session_factory = session_factory or async_session

    async def run(self) -> dict:
        async with self.session_factory() as db:
            return await run_low_skill_notification_sweep(db, self.threshold)


async def run_task(task: ScheduledTask) -> Optional[dict]:
    """Run a task, logging the outcome. Failures are logged and never raised."""
    logger.info(f"Scheduled task '{task.name}' started")
    try:
        result = await task.run()
    except Exception as e:
        logger.error(f"Scheduled task '{task.name}' failed: {e}")
        logger.error(traceback.format_exc())
        return None
    logger.info(f"Scheduled task '{task.name}' completed: {result}")
    return result


def seconds_until_hour(hour: int, now: Optional[datetime] = None) -> float:
    """Seconds from ``now`` until the next HH:00, always in the future."""
    now = now or datetime.now()
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def scheduler_loop():
    """Main scheduler loop. Sleeps until the next run hour, then runs every task."""
    logger.info(f"Scheduler started, {len(SCHEDULED_TASKS)} task(s) daily at {settings.LOW_SKILL_SWEEP_HOUR:02d}:00")
    while True:
        await asyncio.sleep(seconds_until_hour(settings.LOW_SKILL_SWEEP_HOUR))
        for task in SCHEDULED_TASKS:
            await run_task(task)
