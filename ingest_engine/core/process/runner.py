# File: ingest_engine/core/process/runner.py

import os
import logging
import subprocess
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .models import CommandResult, COMMAND_NOT_FOUND_EXIT_CODE

logger = logging.getLogger(__name__)

StderrSink = Callable[[str], None]

# How long to wait for the stdout reader once the child has been killed.
# A grandchild still holding the pipe open must not hang the worker.
READER_JOIN_TIMEOUT_SECONDS = 5


class SubprocessRunner:
    """
    Runs an external tool to completion.

    stdout is captured as a single text blob; stderr is handed to the sink one
    line at a time while the process is still running, so long OCR jobs can
    report progress. Both pipes are drained concurrently (stdout on a helper
    thread) so a chatty tool can never block on a full pipe.

    Output is decoded as UTF-8; undecodable bytes become U+FFFD instead of
    losing the whole stream.
    """

    def run(self,
            cmd: List[str],
            stderr_sink: StderrSink,
            extra_env: Optional[Dict[str, str]] = None,
            cwd: Optional[Path] = None) -> CommandResult:
        env = None
        if extra_env:
            env = dict(os.environ)
            env.update(extra_env)

        logger.info(f"Executing: {' '.join(cmd)}")

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
                env=env,
                cwd=str(cwd) if cwd else None
            )
        except FileNotFoundError as e:
            logger.error(f"Executable not found for {cmd[0]}: {e}")
            stderr_sink(str(e))
            return CommandResult(exit_code=COMMAND_NOT_FOUND_EXIT_CODE)

        stdout_chunks: List[str] = []
        reader_errors: List[BaseException] = []

        def read_stdout():
            try:
                stdout_chunks.append(process.stdout.read())
            except Exception as e:
                reader_errors.append(e)

        reader = threading.Thread(target=read_stdout, daemon=True)

        with process:
            try:
                reader.start()
                for line in process.stderr:
                    stderr_sink(line.rstrip("\n"))
                reader.join()
                return_code = process.wait()
            finally:
                if process.poll() is None:
                    # Sink (or pipe) failed mid-run: never leave the tool behind
                    logger.warning(f"Killing {cmd[0]} (pid {process.pid}) after an error while reading its output")
                    process.kill()
                    process.wait()
                reader.join(timeout=READER_JOIN_TIMEOUT_SECONDS)

        if reader_errors:
            raise reader_errors[0]

        return CommandResult(
            exit_code=self.normalise_exit_code(return_code),
            stdout="".join(stdout_chunks)
        )

    @staticmethod
    def normalise_exit_code(return_code: int) -> int:
        """
        Popen reports death-by-signal N as -N. Map it to the shell's 128 + N so
        that SIGTERM looks the same whether the tool was killed directly or
        exited with 143 itself.
        """
        if return_code < 0:
            return 128 + (-return_code)
        return return_code
