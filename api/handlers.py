"""FastAPI route handlers."""

from fastapi import Request, Response
from fastapi.responses import StreamingResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect

from core.config import Config
from core.exceptions import DecodeError, FieldParseError, RequestTooLarge
from core.multipart import DEFAULT_FILE_CONTENT_TYPE
from core.protocols import RequestLogger
from core.request_types import FormPayload, UploadedFile
from services.upstream import CLIENT_CLOSED_REQUEST, error_response
from ui.log_utils import redact_headers


async def _read_form(request: Request) -> FormPayload:
    """Decode a multipart body into text fields and in-memory files."""
    try:
        form = await request.form()
    except MultiPartException as e:
        raise DecodeError(f"Invalid multipart body: {e.message}") from e
    except StarletteHTTPException as e:
        raise DecodeError(f"Invalid multipart body: {e.detail}") from e

    fields: dict[str, str] = {}
    files: list[UploadedFile] = []
    try:
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                files.append(
                    UploadedFile(
                        field_name=name,
                        filename=value.filename or "",
                        content_type=value.content_type or DEFAULT_FILE_CONTENT_TYPE,
                        content=await value.read(),
                    )
                )
            else:
                fields[name] = value
    finally:
        await form.close()
    return FormPayload(fields=fields, files=tuple(files))


def _check_declared_size(request: Request, config: Config) -> None:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > config.limits.max_body_size:
        raise RequestTooLarge(f"Request body too large ({declared} bytes)")


async def _wait_for_disconnect(request: Request) -> None:
    """Return once the client closes its side of the connection."""
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


def _upstream_path(request: Request) -> str:
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1").split("?", 1)[0] if raw_path else request.url.path
    if request.url.query:
        path += f"?{request.url.query}"
    return path


async def handle_proxy(
    request: Request,
    config: Config,
    logger: RequestLogger,
) -> Response | StreamingResponse:
    """Forward any request upstream, rewriting multipart metadata on the way."""
    routing_service = request.app.state.routing_service
    upstream = request.app.state.upstream_client

    path = _upstream_path(request)
    headers = request.headers.items()
    decision = routing_service.decide(request.headers.get("content-type"))
    logger.log_request(request.method, path, decision.route)
    logger.debug(f"Inbound headers: {redact_headers(dict(headers))}")

    try:
        _check_declared_size(request, config)
        if decision.is_multipart:
            payload = await _read_form(request)
            if payload.size > config.limits.max_body_size:
                raise RequestTooLarge(f"Request body too large ({payload.size} bytes decoded)")
            prepared = routing_service.prepare_multipart(request.method, path, headers, payload)
        else:
            body = await request.body()
            if len(body) > config.limits.max_body_size:
                raise RequestTooLarge(f"Request body too large ({len(body)} bytes)")
            prepared = routing_service.prepare_passthrough(request.method, path, headers, body)
    except ClientDisconnect:
        logger.log_error(decision.route, CLIENT_CLOSED_REQUEST, "Client disconnected while sending the body")
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except RequestTooLarge as e:
        logger.log_error(decision.route, 413, str(e))
        return error_response(str(e), 413)
    except (DecodeError, FieldParseError) as e:
        logger.log_error(decision.route, 400, str(e))
        return error_response(str(e), 400)

    return await upstream.forward(prepared, lambda: _wait_for_disconnect(request))
