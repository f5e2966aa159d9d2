import asyncio
from typing import Awaitable, Callable, Dict, Optional

from utils.logger import get_logger

_logger = get_logger(__name__)

Job = Callable[[], Awaitable[None]]


class Interval:
    """A job run every ``period`` seconds until ``stop()`` is called."""

    def __init__(self, name: str, period: float, job: Job, immediate: bool):
        self.name = name
        self.period = period
        self._job = job
        self._immediate = immediate
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"interval:{self.name}"
        )

    async def _run(self) -> None:
        if not self._immediate:
            await asyncio.sleep(self.period)
        while not self._stopped:
            try:
                await self._job()
            except asyncio.CancelledError:
                raise
            except Exception:
                # a failing tick must not kill the interval
                _logger.exception(f"Interval '{self.name}' raised")
            if self._stopped:
                break
            await asyncio.sleep(self.period)

    def stop(self) -> None:
        self._stopped = True
        if self._task is not None and not self._task.done():
            # stopping from inside the job itself would cancel the caller
            if self._task is not asyncio.current_task():
                self._task.cancel()
        self._task = None


class Scheduler:
    """
    Owns every interval of one order screen.

    ``every`` replaces an interval registered under the same name;
    ``cancel_all`` must be called when the owning screen goes away.
    """

    def __init__(self):
        self._intervals: Dict[str, Interval] = {}

    def every(
        self, name: str, period: float, job: Job, immediate: bool = True
    ) -> Interval:
        self.cancel(name)
        interval = Interval(name, period, job, immediate)
        self._intervals[name] = interval
        interval.start()
        _logger.debug(f"Interval '{name}' started, every {period}s")
        return interval

    def cancel(self, name: str) -> None:
        interval = self._intervals.pop(name, None)
        if interval is not None:
            interval.stop()
            _logger.debug(f"Interval '{name}' cancelled")

    def is_running(self, name: str) -> bool:
        interval = self._intervals.get(name)
        return interval is not None and interval.running

    def cancel_all(self) -> None:
        for name in list(self._intervals):
            self.cancel(name)
