"""
Cooperative progress reporting and cancellation.

Long-running loops call ``init`` once, then ``count`` (or ``check``) once per
outer iteration. A canceled monitor makes ``check`` raise ``Cancelled``.
Tasks nest: ``push(msg, p_min, p_max)`` maps the child's [0, 1] progress onto
the [p_min, p_max] slice of the parent task.
"""

from __future__ import annotations

import logging
from typing import Optional

from tqdm import tqdm

from .errors import Cancelled

logger = logging.getLogger(__name__)


class _Task:
    __slots__ = ("parent", "p_min", "p_max", "count", "maximum", "message")

    def __init__(self, parent: Optional["_Task"] = None, p_min: float = 0.0, p_max: float = 1.0,
                 message: Optional[str] = None):
        self.parent = parent
        self.p_min = p_min
        self.p_max = p_max
        self.count = 0
        self.maximum = 0
        self.message = message

    def label(self) -> str:
        if self.message is not None:
            return self.message
        return self.parent.label() if self.parent is not None else ""

    def local_progress(self) -> float:
        if self.maximum == 0:
            return 0.0
        return min(1.0, self.count / self.maximum)

    def total_progress(self) -> float:
        p = self.local_progress()
        task = self
        while task is not None:
            p = task.p_min + p * (task.p_max - task.p_min)
            task = task.parent
        return p


class ProgressMonitor:
    def __init__(self, show: bool = False, description: str = ""):
        self._task: Optional[_Task] = _Task(message=description or None)
        self._canceled = False
        self._bar = tqdm(total=100, desc=description, disable=not show, leave=False)

    def push(self, message: Optional[str] = None, p_min: float = 0.0, p_max: float = 1.0):
        self._task = _Task(self._task, p_min, p_max, message)
        if message:
            logger.debug("task: %s [%.2f, %.2f]", message, p_min, p_max)
        self._update()

    def pop(self):
        if self._task is not None and self._task.parent is not None:
            self._task = self._task.parent

    def init(self, maximum: int, message: Optional[str] = None):
        self._task.count = 0
        self._task.maximum = int(maximum)
        if message is not None:
            self._task.message = message
        self._update()

    def count(self, n: int = 1) -> bool:
        """Advance the current task; returns False once the monitor was canceled."""
        self._task.count += n
        self._update()
        return not self._canceled

    def check(self):
        if self._canceled:
            raise Cancelled(f"Canceled during '{self.message}'")

    def end(self):
        self._task.count = self._task.maximum
        self._update()

    def cancel(self):
        self._canceled = True

    @property
    def canceled(self) -> bool:
        return self._canceled

    @property
    def message(self) -> str:
        return self._task.label()

    @property
    def task_progress(self) -> float:
        return self._task.local_progress()

    @property
    def progress(self) -> float:
        return self._task.total_progress()

    def close(self):
        self._bar.close()

    def _update(self):
        pct = int(100 * self.progress)
        if pct != self._bar.n:
            self._bar.n = pct
            self._bar.set_description_str(self.message, refresh=False)
            self._bar.refresh()
