"""
Same-origin relay endpoint.

POST {action, token?, ...params} -> 200 {status, data} for every forwarded call,
400 {"error": "Invalid action"} for an unknown action, 500 {"error": ...} when the relay
itself fails. OPTIONS answers the CORS preflight. GET ?action=storage&bucket=&path=
serves stored objects (the public URL the relay-mode facade hands out).
"""
import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from parkaccess.api.deps import get_bearer_token, get_relay_forwarder
from parkaccess.core.constants import MSG_INVALID_ACTION, RELAY_CORS_HEADERS
from parkaccess.services.relay import STATUS_BAD_REQUEST, STATUS_RELAY_FAILED, RelayForwarder

router = APIRouter()
logger = logging.getLogger(__name__)


@router.options("")
def relay_preflight() -> Response:
    return Response(headers=RELAY_CORS_HEADERS)


@router.post("")
async def relay(request: Request, forwarder: RelayForwarder = Depends(get_relay_forwarder)) -> JSONResponse:
    """Forward one action upstream; the upstream outcome is inside the envelope."""
    try:
        payload = await request.json()
    except ValueError as e:
        logger.warning("Relay got a malformed JSON body: %s", e)
        return JSONResponse({"error": f"Malformed JSON body: {e}"}, status_code=STATUS_RELAY_FAILED, headers=RELAY_CORS_HEADERS)
    status_code, body = await asyncio.to_thread(forwarder.forward, payload)
    return JSONResponse(body, status_code=status_code, headers=RELAY_CORS_HEADERS)


@router.get("")
def relay_object(
    action: str = Query(...),
    bucket: str = Query(...),
    path: str = Query(...),
    token: str | None = Depends(get_bearer_token),
    forwarder: RelayForwarder = Depends(get_relay_forwarder),
) -> Response:
    """Stream a stored object through the relay."""
    if action != "storage":
        return JSONResponse({"error": MSG_INVALID_ACTION}, status_code=STATUS_BAD_REQUEST, headers=RELAY_CORS_HEADERS)
    try:
        upstream = forwarder.fetch_object(bucket, path, token)
    except Exception as e:
        logger.exception("Relay object fetch %s/%s failed: %s", bucket, path, e)
        return JSONResponse({"error": str(e)}, status_code=STATUS_RELAY_FAILED, headers=RELAY_CORS_HEADERS)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "application/octet-stream"),
        headers={**RELAY_CORS_HEADERS, "Cache-Control": "public, max-age=3600"},
    )
