"""HTTP proxying to the extraction service with streaming in both directions."""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable

import httpx
from fastapi import Response
from fastapi.responses import StreamingResponse

from core.exceptions import StreamError
from core.headers import HeaderBuilder
from core.multipart import build_multipart_request
from core.protocols import RequestLogger
from core.request_types import FormPayload, PreparedRequest
from services.forwarding import ForwardingPipe

CLIENT_CLOSED_REQUEST = 499


def error_response(message: str, status_code: int) -> Response:
    return Response(
        content=json.dumps({"error": message}),
        status_code=status_code,
        media_type="application/json",
    )


class UpstreamClient:
    """Send prepared requests upstream and relay the responses."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        logger: RequestLogger,
        header_builder: HeaderBuilder | None = None,
    ) -> None:
        self._client = client
        self._logger = logger
        self._headers = header_builder or HeaderBuilder()

    async def forward(
        self,
        prepared: PreparedRequest,
        wait_for_disconnect: Callable[[], Awaitable[None]] | None = None,
    ) -> Response | StreamingResponse:
        """Forward the request and stream the upstream response back.

        The outbound body is written completely (or aborted) before any
        response byte is relayed.
        """
        pipe: ForwardingPipe | None = None
        if isinstance(prepared.body, FormPayload):
            request = build_multipart_request(
                self._client, prepared.method, prepared.path, prepared.headers, prepared.body
            )
            if "Content-Length" not in request.headers:
                self._logger.debug("Content-Length unknown, using chunked transfer")
            pipe = ForwardingPipe(request.stream, self._logger)
            request.stream = pipe
        else:
            request = self._client.build_request(
                prepared.method,
                prepared.path,
                headers=prepared.headers,
                content=prepared.body,
            )
        route = prepared.route_name
        try:
            response = await self._send(request, wait_for_disconnect)
        except StreamError as e:
            if pipe:
                pipe.abort(e)
            if e.direction == "inbound":
                self._logger.log_error(route, CLIENT_CLOSED_REQUEST, str(e))
                return Response(status_code=CLIENT_CLOSED_REQUEST)
            self._logger.log_error(route, 502, str(e))
            return error_response(f"Upstream request aborted: {e}", 502)
        except httpx.TimeoutException as e:
            if pipe:
                pipe.abort(e)
            self._logger.log_error(route, 504, "Upstream timeout")
            return error_response("Upstream timeout", 504)
        except httpx.RequestError as e:
            if pipe:
                pipe.abort(e)
            self._logger.log_error(route, 502, str(e))
            return error_response(f"Upstream connection error: {e}", 502)

        if response.status_code >= 400:
            self._logger.log_error(route, response.status_code, f"Upstream replied {response.reason_phrase}")

        relayed = StreamingResponse(
            self._relay(response, route),
            status_code=response.status_code,
        )
        relayed.raw_headers = [
            (key.encode("latin-1"), value.encode("latin-1"))
            for key, value in self._headers.build_response_headers(response.headers.multi_items())
        ]
        return relayed

    async def _send(
        self,
        request: httpx.Request,
        wait_for_disconnect: Callable[[], Awaitable[None]] | None,
    ) -> httpx.Response:
        """Send the request; cancel it if the inbound client goes away first."""
        if wait_for_disconnect is None:
            return await self._client.send(request, stream=True)

        send = asyncio.ensure_future(self._client.send(request, stream=True))
        watcher = asyncio.ensure_future(wait_for_disconnect())
        try:
            await asyncio.wait({send, watcher}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            send.cancel()
            raise
        finally:
            watcher.cancel()
        if send.done():
            return send.result()

        send.cancel()
        try:
            response = await send
        except asyncio.CancelledError:
            pass  # the send we just cancelled
        else:
            await response.aclose()
        raise StreamError("Client disconnected before upstream replied", direction="inbound")

    async def _relay(self, response: httpx.Response, route: str) -> AsyncIterator[bytes]:
        """Yield the upstream body verbatim; a read error drops the client connection."""
        try:
            if response.is_stream_consumed:
                # Already read by the transport (in-process transports do this)
                yield response.content
                return
            async for chunk in response.aiter_raw():
                yield chunk
        except httpx.HTTPError as e:
            self._logger.log_error(route, 502, f"Upstream response stream error: {e}")
            raise StreamError(str(e), direction="relay") from e
        finally:
            await response.aclose()
