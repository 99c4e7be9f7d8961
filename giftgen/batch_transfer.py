#!/usr/bin/env python3
"""
batch_transfer.py

Parallel upload and deletion of Gemini files.

All transfers of one batch run concurrently in a single thread: one asyncio
event loop waits on every socket at once and advances whichever transfers are
ready, and one shared httpx.AsyncClient multiplexes the requests (HTTP/2)
over its connections. run_batch() returns only when every task is terminal
or the batch deadline has passed.

Result policy:
- Uploads are all-or-nothing. The first task (in submission order) that did
  not produce a file id aborts the whole batch with a TransferError; no
  partial id list is ever returned. On success the ids come back in
  submission order.
- Deletions are best-effort. Failures are logged and counted in the
  DeletionReport; nothing is raised.

Usage:
    orchestrator = BatchTransferOrchestrator(api_key)
    file_ids = orchestrator.upload_files(["notes.pdf", "slides.pptx"])
    ...
    orchestrator.delete_files(file_ids)
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import httpx

from giftgen.errors import (
    batch_timeout_error,
    empty_upload_response_error,
    unparsable_upload_response_error,
    upload_http_error,
    upload_transport_error,
)
from giftgen.gemini_client import (
    DEFAULT_BASE_URL,
    display_name,
    file_url,
    get_mime_type,
    handle_from_resource_name,
    upload_url,
)
from giftgen.security_utils import redact_api_key


logger = logging.getLogger(__name__)

# Seconds; bounds a whole batch so a hung transfer cannot block forever
DEFAULT_BATCH_TIMEOUT = 600.0
CONNECT_TIMEOUT = 10.0
DEADLINE_EXCEEDED = "batch deadline exceeded"


class Operation(Enum):
    UPLOAD = "upload"
    DELETE = "delete"


class TaskStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"   # an HTTP response arrived (any status)
    FAILED = "failed"         # no HTTP response: transport error or deadline


@dataclass
class TransferTask:
    """One transfer in a batch; owned by the orchestrator while it runs."""
    local_identifier: str
    operation: Operation
    remote_handle: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    http_status: Optional[int] = None
    raw_response_body: str = ""
    error: Optional[str] = None

    @classmethod
    def upload(cls, path: str) -> "TransferTask":
        return cls(local_identifier=str(path), operation=Operation.UPLOAD)

    @classmethod
    def delete(cls, handle: str) -> "TransferTask":
        return cls(local_identifier=handle, operation=Operation.DELETE, remote_handle=handle)

    @property
    def terminal(self) -> bool:
        return self.status is not TaskStatus.PENDING

    def describe_failure(self) -> str:
        if self.error:
            return self.error
        return f"HTTP {self.http_status}"


@dataclass
class DeletionReport:
    """Final accounting of a best-effort deletion batch"""
    tasks: List[TransferTask] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.tasks)

    @property
    def deleted(self) -> List[str]:
        return [t.local_identifier for t in self.tasks if _is_success(t)]

    @property
    def failed(self) -> List[TransferTask]:
        return [t for t in self.tasks if not _is_success(t)]


def _is_success(task: TransferTask) -> bool:
    return (
        task.status is TaskStatus.COMPLETED
        and task.http_status is not None
        and 200 <= task.http_status < 300
    )


class BatchTransferOrchestrator:
    """
    Runs batches of uploads or deletions against the Gemini Files API.

    Args:
        api_key: Gemini API key (sent as the "key" query parameter)
        base_url: API root, overridable for testing/proxies
        batch_timeout: Seconds allowed per batch; None or 0 disables the deadline
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        batch_timeout: Optional[float] = DEFAULT_BATCH_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.batch_timeout = batch_timeout or None
        self.transport = transport

    # ------------------------------------------------------------------
    # Batch driver
    # ------------------------------------------------------------------

    def run_batch(self, tasks: Sequence[TransferTask]) -> List[TransferTask]:
        """
        Drive every task to a terminal state and return them in input order.

        Never raises for a failed transfer; the failure is recorded on the
        task. The HTTP client and every opened file are released before this
        returns, on all paths.
        """
        tasks = list(tasks)
        if not tasks:
            return tasks
        asyncio.run(self._run_batch(tasks))
        return tasks

    async def _run_batch(self, tasks: List[TransferTask]) -> None:
        async with self._make_client() as client:
            futures = [asyncio.ensure_future(self._perform(client, task)) for task in tasks]
            done, not_done = await asyncio.wait(futures, timeout=self.batch_timeout)

            if not_done:
                logger.warning(
                    "%d of %d transfers still running after %gs; cancelling",
                    len(not_done), len(tasks), self.batch_timeout,
                )
                for future in not_done:
                    future.cancel()
                await asyncio.gather(*not_done, return_exceptions=True)

            for task in tasks:
                if not task.terminal:
                    task.status = TaskStatus.FAILED
                    task.error = DEADLINE_EXCEEDED

            # Surface programming errors; expected failures were caught per task
            for future in done:
                future.result()

    def _make_client(self) -> httpx.AsyncClient:
        kwargs = {}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        else:
            kwargs["http2"] = True
        return httpx.AsyncClient(
            params={"key": self.api_key},
            timeout=httpx.Timeout(None, connect=CONNECT_TIMEOUT),
            limits=httpx.Limits(max_connections=None, max_keepalive_connections=None),
            **kwargs,
        )

    async def _perform(self, client: httpx.AsyncClient, task: TransferTask) -> None:
        try:
            if task.operation is Operation.UPLOAD:
                response = await self._send_upload(client, task)
            else:
                response = await client.delete(file_url(task.remote_handle, self.base_url))
        except (httpx.HTTPError, OSError) as e:
            task.status = TaskStatus.FAILED
            task.error = redact_api_key(f"{type(e).__name__}: {e}".rstrip(": "), self.api_key)
            logger.debug("%s %s failed: %s", task.operation.value, task.local_identifier, task.error)
            return

        task.http_status = response.status_code
        task.raw_response_body = response.text
        task.status = TaskStatus.COMPLETED
        logger.debug(
            "%s %s -> HTTP %d", task.operation.value, task.local_identifier, response.status_code
        )

    async def _send_upload(self, client: httpx.AsyncClient, task: TransferTask) -> httpx.Response:
        path = task.local_identifier
        name = display_name(path)
        metadata = json.dumps({"file": {"display_name": name}})
        with open(path, "rb") as fh:
            files = {
                "metadata": (None, metadata, "application/json; charset=utf-8"),
                "file": (name, fh, get_mime_type(path)),
            }
            return await client.post(upload_url(self.base_url), files=files)

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def upload_files(self, paths: Sequence[str]) -> List[str]:
        """
        Upload every file in parallel and return their ids in input order.

        Raises:
            TransferError: For the first file (in input order) that failed;
                its uploaded_handles lists the files that did reach the
                server so the caller can remove them.
        """
        if not paths:
            return []

        logger.info("Starting parallel upload of %d files to Gemini...", len(paths))
        tasks = self.run_batch([TransferTask.upload(p) for p in paths])
        file_ids = self._interpret_uploads(tasks)
        logger.info("Successfully uploaded all %d files to Gemini in parallel.", len(paths))
        return file_ids

    def _interpret_uploads(self, tasks: List[TransferTask]) -> List[str]:
        parse_errors = {}
        for task in tasks:
            if task.http_status == 200 and task.raw_response_body:
                handle, error = _parse_upload_response(task.raw_response_body)
                task.remote_handle = handle
                if error is not None:
                    parse_errors[id(task)] = error

        uploaded = [t.remote_handle for t in tasks if t.remote_handle]

        for task in tasks:
            name = task.local_identifier
            if task.error == DEADLINE_EXCEEDED:
                timed_out = [t.local_identifier for t in tasks if t.error == DEADLINE_EXCEEDED]
                err = batch_timeout_error("upload", self.batch_timeout, timed_out)
                err.uploaded_handles = uploaded
                raise err
            if task.status is TaskStatus.FAILED:
                raise upload_transport_error(name, task.describe_failure(), uploaded)
            if task.http_status != 200:
                raise upload_http_error(name, task.http_status, uploaded)
            if not task.raw_response_body:
                raise empty_upload_response_error(name, uploaded)
            if task.remote_handle is None:
                raise unparsable_upload_response_error(name, uploaded, parse_errors.get(id(task)))

        return [task.remote_handle for task in tasks]

    # ------------------------------------------------------------------
    # Deletions
    # ------------------------------------------------------------------

    def delete_files(self, file_ids: Sequence[str]) -> DeletionReport:
        """Delete every file in parallel; failures are logged, never raised."""
        if not file_ids:
            return DeletionReport()

        logger.info("Starting parallel deletion of %d files from Gemini...", len(file_ids))
        report = DeletionReport(self.run_batch([TransferTask.delete(h) for h in file_ids]))

        for task in report.failed:
            logger.warning("Could not delete file %s: %s", task.remote_handle, task.describe_failure())

        if report.failed:
            logger.warning(
                "Deleted %d of %d files from online storage.",
                len(report.deleted), report.attempted,
            )
        else:
            logger.info(
                "All %d files have been successfully deleted from online storage.",
                report.attempted,
            )
        return report


def _parse_upload_response(body: str) -> Tuple[Optional[str], Optional[Exception]]:
    """Extract the file id from {"file": {"name": "files/<id>"}}."""
    try:
        data = json.loads(body)
    except ValueError as e:
        return None, e
    file_info = data.get("file") if isinstance(data, dict) else None
    name = file_info.get("name") if isinstance(file_info, dict) else None
    if not isinstance(name, str) or not name:
        return None, None
    return handle_from_resource_name(name) or None, None
