from .mirror_task import MirrorTask, TaskBusyError, TaskState, check_runtime

__all__ = [
    "MirrorTask",
    "TaskBusyError",
    "TaskState",
    "check_runtime",
]
