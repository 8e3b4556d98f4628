"""
api/routes/assets.py -- Owner-scoped asset routes for the AssetVault REST API.

Routes:
  POST   /upload-asset/{name}  -- store the raw request body as an asset
  GET    /asset/{name}         -- return the asset bytes
  DELETE /asset/{name}         -- delete the asset
  GET    /assets               -- list the caller's assets (no bytes)

Tenant boundary:
  Every handler takes the owner id from the validated Session and passes it to
  AssetStore, which filters every statement on it. A name that exists only
  under another owner is reported exactly like a name that does not exist.

Uploads:
  The body is streamed and capped at Settings.max_upload_bytes; anything
  larger is rejected with 413 before it reaches the store.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from api.models import AssetListItem, AssetListResponse, StatusResponse
from assets.models import Asset
from assets.store import AssetStore
from auth.dependencies import client_ip, get_current_session
from auth.models import Session
from core.errors import BadRequest, NotFound, PayloadTooLarge

logger = logging.getLogger("assetvault.assets")

# All asset routes require authentication.
# Router-level dependency applies to every route registered on this router;
# handlers that need the Session declare it again (FastAPI resolves it once).
router = APIRouter(dependencies=[Depends(get_current_session)])

_MAX_NAME_LENGTH = 255


def _check_name(name: str) -> str:
    if not name.strip() or len(name) > _MAX_NAME_LENGTH:
        raise BadRequest(f"invalid asset name of length {len(name)}")
    return name


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the raw request body, refusing to buffer more than limit bytes."""
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLarge(f"declared body of {declared} bytes")
    chunks: list[bytes] = []
    total = 0
    try:
        async for chunk in request.stream():
            total += len(chunk)
            if total > limit:
                raise PayloadTooLarge(f"body exceeded {limit} bytes")
            chunks.append(chunk)
    except ClientDisconnect as exc:
        raise BadRequest("client disconnected during upload") from exc
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# POST /upload-asset/{name}
# ---------------------------------------------------------------------------


@router.post("/upload-asset/", include_in_schema=False)
def upload_asset_without_name() -> None:
    """An upload must name its asset."""
    raise BadRequest("missing asset name")


@router.post("/upload-asset/{name}", response_model=StatusResponse)
async def upload_asset(
    request: Request,
    name: str,
    session: Session = Depends(get_current_session),
) -> StatusResponse:
    """Store the raw request body as asset `name` owned by the caller."""
    _check_name(name)
    data = await _read_body(request, request.app.state.settings.max_upload_bytes)

    asset_store: AssetStore = request.app.state.asset_store
    await run_in_threadpool(asset_store.create, Asset(name=name, owner_id=session.owner_id, data=data))

    logger.info(
        "Asset uploaded: name=%r user=%d bytes=%d ip=%s",
        name,
        session.owner_id,
        len(data),
        client_ip(request),
    )
    return StatusResponse()


# ---------------------------------------------------------------------------
# GET /asset/{name}
# ---------------------------------------------------------------------------


@router.get("/asset/{name}", response_class=Response)
def get_asset(
    request: Request,
    name: str,
    session: Session = Depends(get_current_session),
) -> Response:
    """Return the raw bytes of the caller's asset `name`."""
    asset_store: AssetStore = request.app.state.asset_store
    asset = asset_store.get(name, session.owner_id)
    if asset is None:
        raise NotFound(f"asset {name!r} not found for user {session.owner_id}")

    logger.info("Asset retrieved: name=%r user=%d ip=%s", name, session.owner_id, client_ip(request))
    return Response(content=asset.data, media_type="application/octet-stream")


# ---------------------------------------------------------------------------
# DELETE /asset/{name}
# ---------------------------------------------------------------------------


@router.delete("/asset/{name}", response_model=StatusResponse)
def delete_asset(
    request: Request,
    name: str,
    session: Session = Depends(get_current_session),
) -> StatusResponse:
    """Delete the caller's asset `name`. Deleting a missing asset is not an error."""
    asset_store: AssetStore = request.app.state.asset_store
    removed = asset_store.delete(name, session.owner_id)

    logger.info(
        "Asset deleted: name=%r user=%d rows=%d ip=%s",
        name,
        session.owner_id,
        removed,
        client_ip(request),
    )
    return StatusResponse()


# ---------------------------------------------------------------------------
# GET /assets
# ---------------------------------------------------------------------------


@router.get("/assets", response_model=AssetListResponse)
def list_assets(
    request: Request,
    session: Session = Depends(get_current_session),
) -> AssetListResponse:
    """Return name, owner, creation time and size of every asset the caller owns."""
    asset_store: AssetStore = request.app.state.asset_store
    summaries = asset_store.list_for_owner(session.owner_id)
    return AssetListResponse(assets=[AssetListItem.from_summary(s) for s in summaries])
