import logging
import time
from typing import Callable, Optional, Union
from videonft.domain.errors import TaskFailedError, TaskTimeoutError
from videonft.domain.models import Task, TaskPhase

ProgressObserver = Callable[[float], None]
FetchTask = Callable[[str], Task]

DEFAULT_POLL_INTERVAL = 2.5

logger = logging.getLogger(__name__)


def normalize_progress(progress: Optional[float]) -> float:
    """Maps remote progress (0-1 or 0-100) into [0, 1]."""
    if not progress or progress < 0:
        return 0.0
    if progress > 1:
        progress = progress / 100
    return min(progress, 1.0)


def wait_for_task(
    task: Union[Task, str],
    fetch_task: FetchTask,
    on_progress: Optional[ProgressObserver] = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Task:
    """Polls ``fetch_task`` until the task reaches a terminal phase.

    ``on_progress`` receives each new progress value once, in increasing
    order. Failed and cancelled tasks raise :class:`TaskFailedError`; a
    ``timeout`` (seconds) raises :class:`TaskTimeoutError` instead of polling
    forever.
    """
    if isinstance(task, str):
        task = fetch_task(task)

    started = clock()
    last_progress = 0.0
    while not task.status.phase.is_terminal:
        progress = normalize_progress(task.status.progress)
        if progress > last_progress:
            last_progress = progress
            if on_progress:
                on_progress(progress)

        if timeout is not None and clock() - started >= timeout:
            raise TaskTimeoutError(task.id, timeout)

        sleep(poll_interval)
        task = fetch_task(task.id)
        logger.debug(f"Task {task.id} ({task.type}): phase={task.status.phase.value} progress={task.status.progress}")

    if task.status.phase == TaskPhase.COMPLETED:
        return task

    error_message = task.status.error_message
    if error_message is None:
        error_message = "task was cancelled" if task.status.phase == TaskPhase.CANCELLED else "unknown error"
    raise TaskFailedError(task.type, error_message, task_id=task.id, phase=task.status.phase.value)
