"""Forwarding pipe: feeds the encoded multipart body into the outbound request."""

from collections.abc import AsyncIterable, AsyncIterator
from enum import Enum

import httpx

from core.exceptions import StreamError
from core.protocols import RequestLogger


class PipeOutcome(str, Enum):
    PENDING = "pending"
    FINISHED = "finished"
    ABORTED = "aborted"


class ForwardingPipe(httpx.AsyncByteStream):
    """Wraps the request stream httpx rendered for the multipart body.

    httpx pulls the next chunk only after the previous one was written to
    the connection, so the source is never read ahead of the socket. The
    pipe settles exactly once: FINISHED when the source is exhausted, or
    ABORTED when it fails. A failure is re-raised as StreamError, which
    makes httpx drop the connection instead of completing the request.
    """

    def __init__(self, source: AsyncIterable[bytes], logger: RequestLogger | None = None) -> None:
        self._source = source
        self._logger = logger
        self.outcome = PipeOutcome.PENDING
        self.bytes_sent = 0
        self.error: BaseException | None = None

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self.outcome is not PipeOutcome.PENDING:
            raise RuntimeError("ForwardingPipe can only be consumed once")
        try:
            async for chunk in self._source:
                self.bytes_sent += len(chunk)
                yield chunk
        except StreamError as e:
            self._settle(PipeOutcome.ABORTED, e)
            raise
        except Exception as e:
            self._settle(PipeOutcome.ABORTED, e)
            raise StreamError(f"Form pipe error: {e}", direction="outbound") from e
        except BaseException as e:
            # Closed early or cancelled while the outbound write was pending
            self.abort(e)
            raise
        self._settle(PipeOutcome.FINISHED)

    def abort(self, error: BaseException) -> None:
        """Mark the pipe aborted unless it has already settled."""
        if self.outcome is PipeOutcome.PENDING:
            self._settle(PipeOutcome.ABORTED, error)

    def _settle(self, outcome: PipeOutcome, error: BaseException | None = None) -> None:
        if self.outcome is not PipeOutcome.PENDING:
            raise RuntimeError(f"ForwardingPipe already {self.outcome.value}")
        self.outcome = outcome
        self.error = error
        if self._logger is None:
            return
        if outcome is PipeOutcome.ABORTED:
            self._logger.warning(f"Outbound body aborted after {self.bytes_sent} bytes: {error}")
        else:
            self._logger.debug(f"Outbound body finished ({self.bytes_sent} bytes)")
