"""Facade binding the writer, dispatcher, and sync sender to one Config."""

import logging

from lazylog.config import Config
from lazylog.dispatcher import AsyncDispatcher, SubprocessExecutor
from lazylog.errors import SpawnError, SpawnResult, WriteResult
from lazylog.payload import format_exception
from lazylog.sender import SendOutcome, SyncSender
from lazylog.writer import LocalLogWriter

logger = logging.getLogger(__name__)


class Reporter:
    def __init__(self, config: Config, writer: LocalLogWriter | None = None,
                 dispatcher: AsyncDispatcher | None = None,
                 sender: SyncSender | None = None):
        self._config = config
        self._writer = writer or LocalLogWriter(lock_timeout=config.lock_timeout)
        self._dispatcher = dispatcher or AsyncDispatcher(
            executor=SubprocessExecutor(config.worker_executable),
            staging_dir=config.staging_dir,
            timeout_seconds=config.async_timeout,
        )
        self._sender = sender or SyncSender(timeout=config.sync_timeout)

    @property
    def config(self) -> Config:
        return self._config

    def write(self, file_name: str | None, title: str, content) -> WriteResult:
        return self._writer.try_write(
            self._config.base_path,
            file_name or self._config.file_name,
            title,
            content,
            self._config.max_lines,
            self._config.max_size_kb,
        )

    def _shape(self, exc, context) -> dict | None:
        try:
            return format_exception(exc, self._config.project, context)
        except Exception:
            logger.exception("Could not build report payload for %s", type(exc).__name__)
            return None

    def report_async(self, exc: BaseException, context: dict | None = None) -> SpawnResult | None:
        if not self._config.collector_url:
            logger.debug("No collector URL configured, async report skipped")
            return None
        payload = self._shape(exc, context)
        if payload is None:
            return SpawnResult(started=False, error=SpawnError.SERIALIZE)
        return self._dispatcher.try_dispatch(payload, self._config.collector_url)

    def report_sync(self, exc: BaseException, context: dict | None = None) -> SendOutcome | None:
        if not self._config.collector_url:
            logger.debug("No collector URL configured, sync report skipped")
            return None
        payload = self._shape(exc, context)
        if payload is None:
            return SendOutcome(delivered=False, error="payload: could not describe exception")
        return self._sender.post(payload, self._config.collector_url)
