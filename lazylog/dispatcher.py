"""Fire-and-forget delivery through a detached worker process."""

import logging
import os
import subprocess
import sys

from lazylog.errors import SpawnError, SpawnResult
from lazylog.task import DEFAULT_TIMEOUT, DetachedTask, encode_payload

logger = logging.getLogger(__name__)

WORKER_MODULE = "lazylog.worker"

# directory that holds the lazylog package, so the worker can import it
_PACKAGE_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _worker_env() -> dict:
    env = dict(os.environ)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = _PACKAGE_ROOT + (os.pathsep + existing if existing else "")
    return env


def _detach_kwargs() -> dict:
    if os.name == "nt":
        return {
            "creationflags": subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP,
        }
    return {"start_new_session": True}


class SubprocessExecutor:
    """Runs a materialized task in an independent interpreter process.

    Arguments are passed as a list, never through a shell. The parent does not
    keep pipes to the child and never waits on it.
    """

    def __init__(self, executable: str | None = None):
        self._executable = executable or sys.executable

    def command(self, task: DetachedTask) -> list[str]:
        return [self._executable, "-m", WORKER_MODULE, *task.worker_args()]

    def run_detached(self, task: DetachedTask) -> SpawnResult:
        try:
            subprocess.Popen(
                self.command(task),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                close_fds=True,
                env=_worker_env(),
                **_detach_kwargs(),
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logger.warning("Could not spawn delivery worker %s: %s", self._executable, e)
            return SpawnResult(started=False, staging_path=task.staging_path, error=SpawnError.SPAWN)
        return SpawnResult(started=True, staging_path=task.staging_path)


class AsyncDispatcher:
    def __init__(self, executor=None, staging_dir: str | None = None,
                 timeout_seconds: int = DEFAULT_TIMEOUT):
        self._executor = executor or SubprocessExecutor()
        self._staging_dir = staging_dir
        self._timeout = timeout_seconds

    def dispatch(self, payload, destination_url: str, executable: str | None = None) -> None:
        """Queue *payload* for out-of-band delivery. Never raises, never waits on delivery."""
        self.try_dispatch(payload, destination_url, executable)

    def try_dispatch(self, payload, destination_url: str,
                     executable: str | None = None) -> SpawnResult:
        try:
            body = encode_payload(payload)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning("Could not serialize payload for %s: %s", destination_url, e)
            return SpawnResult(started=False, error=SpawnError.SERIALIZE)

        task = DetachedTask(body, destination_url, self._timeout)
        executor = SubprocessExecutor(executable) if executable else self._executor
        return self.submit(task, executor)

    def submit(self, task: DetachedTask, executor=None) -> SpawnResult:
        """Stage *task* and hand it to the executor."""
        try:
            task.materialize(self._staging_dir)
        except OSError as e:
            logger.warning("Could not write staging file: %s", e)
            return SpawnResult(started=False, error=SpawnError.STAGING)

        try:
            return (executor or self._executor).run_detached(task)
        except Exception:
            # the staging file stays behind as an orphan
            logger.exception("Delivery executor failed for %s", task.staging_path)
            return SpawnResult(started=False, staging_path=task.staging_path, error=SpawnError.SPAWN)
