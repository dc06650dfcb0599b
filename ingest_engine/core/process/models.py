from dataclasses import dataclass

# 128 + SIGTERM. What a worker's child reports when a supervisor kills the worker mid-task.
WORKER_TERMINATED_EXIT_CODE = 143

# Shell convention for "command not found".
COMMAND_NOT_FOUND_EXIT_CODE = 127


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of one external process run.
    stderr is not kept here: it was streamed to the caller's sink line by line.
    """
    exit_code: int
    stdout: str = ""

    @property
    def was_terminated(self) -> bool:
        return self.exit_code == WORKER_TERMINATED_EXIT_CODE
