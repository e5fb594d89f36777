"""Debounced day record writes on an APScheduler background scheduler."""

import logging
import threading
from datetime import date, datetime, timedelta
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from daybook.core.dates import day_key, to_date
from daybook.errors import PersistenceError

logger = logging.getLogger(__name__)

JOB_PREFIX = "save:"


class DebouncedWriter:
    """
    At most one pending write per day key.

    A new request for a day replaces the pending job for that day, so a burst
    of edits ends in a single write of the latest text. Each write overwrites
    the whole record.
    """

    def __init__(
        self,
        write: Callable[[date, str], None],
        delay: float = 0.5,
        on_error: Callable[[Exception], None] | None = None,
        scheduler: BackgroundScheduler | None = None,
    ):
        self._write = write
        self.delay = delay
        self.on_error = on_error
        self.scheduler = scheduler or BackgroundScheduler()
        self.last_error: Exception | None = None
        self._lock = threading.Lock()

    @staticmethod
    def job_id(day) -> str:
        return f"{JOB_PREFIX}{day_key(day)}"

    def request(self, day, content: str) -> None:
        """Schedule a write, superseding any pending one for the same day."""
        target = to_date(day)
        if self.delay <= 0:
            self._run(target, content)
            return

        self.scheduler.add_job(
            self._run,
            "date",
            run_date=datetime.now() + timedelta(seconds=self.delay),
            id=self.job_id(target),
            args=[target, content],
            replace_existing=True,
            misfire_grace_time=None,
        )
        if not self.scheduler.running:
            self.scheduler.start()

    def pending(self, day) -> str | None:
        """Text waiting to be written for a day, if any."""
        job = self.scheduler.get_job(self.job_id(day))
        return job.args[1] if job else None

    def flush(self) -> None:
        """Run every pending write now."""
        for job in self.scheduler.get_jobs():
            if not job.id.startswith(JOB_PREFIX):
                continue
            try:
                job.remove()
            except JobLookupError:
                # Already picked up by the scheduler thread.
                continue
            self._run(*job.args)

    def shutdown(self) -> None:
        """Flush pending writes and stop the scheduler."""
        self.flush()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)

    def _run(self, target: date, content: str) -> None:
        with self._lock:
            try:
                self._write(target, content)
                self.last_error = None
                logger.debug(f"Saved day record {target.isoformat()}")
            except (OSError, PersistenceError) as e:
                self.last_error = e
                logger.error(f"Auto-save failed for {target.isoformat()}: {e}")
                if self.on_error:
                    self.on_error(e)
