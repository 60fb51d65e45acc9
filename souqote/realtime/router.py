import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from loguru import logger
from sqlalchemy.orm import Session
from sse_starlette.sse import EventSourceResponse

from souqote.database import get_db
from souqote.realtime.broker import broker
from souqote.rfqs.models import RFQ
from souqote.users.auth import decode_access_token, optional_oauth2_scheme, resolve_session_user


router = APIRouter()

STREAM_TABLES = ("rfqs", "quotes", "messages", "notifications")
RESERVED_PARAMS = {"access_token"}


def get_stream_user(
    access_token: Optional[str] = Query(None, description="EventSource cannot send headers"),
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
):
    token = token or access_token
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return resolve_session_user(db, decode_access_token(token))


def _thread_participants(thread_id: str):
    try:
        _, first, second = thread_id.split("-")
        return {int(first), int(second)}
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid thread_id")


def scoped_filters(db: Session, user, table: str, params: dict) -> dict:
    """
    Narrow the requested filters to rows the user may see. Raises 403 when the
    requested scope belongs to someone else.
    """
    if table not in STREAM_TABLES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown channel '{table}'")

    filters = {k: v for k, v in params.items() if k not in RESERVED_PARAMS}
    is_admin = user.user_type == "admin"

    if table == "notifications":
        filters["user_id"] = user.id

    elif table == "messages":
        if "thread_id" in filters:
            if user.id not in _thread_participants(filters["thread_id"]):
                raise HTTPException(status_code=403, detail="Not a participant of this conversation")
        else:
            filters["receiver_id"] = user.id

    elif table == "quotes" and not is_admin:
        if user.user_type == "vendor":
            filters["vendor_id"] = user.id
        elif "rfq_id" not in filters:
            raise HTTPException(status_code=400, detail="rfq_id filter is required")
        else:
            try:
                rfq_id = int(filters["rfq_id"])
            except ValueError:
                raise HTTPException(status_code=400, detail="rfq_id must be an integer")
            rfq = db.query(RFQ).filter(RFQ.id == rfq_id).first()
            if not rfq or rfq.buyer_id != user.id:
                raise HTTPException(status_code=403, detail="Insufficient permissions")

    return filters


@router.get("/{table}")
async def stream_changes(
    table: str,
    request: Request,
    current_user=Depends(get_stream_user),
    db: Session = Depends(get_db),
):
    """
    Stream row changes for a table as Server-Sent Events.

    Extra query parameters are equality filters on the changed row, e.g.
    `/realtime/messages?thread_id=3-4-9`. Each event is named after the change
    type (INSERT, UPDATE, DELETE) and carries the `ChangeEvent` as JSON.
    """
    filters = scoped_filters(db, current_user, table, dict(request.query_params))
    logger.info(f"Change stream opened on {table} for user {current_user.id} with {filters}")

    async def event_generator():
        sub = broker.subscribe(table, filters)
        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    event = await asyncio.wait_for(sub.queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                yield {"event": event.event_type, "data": event.model_dump_json()}
        finally:
            broker.unsubscribe(sub)
            logger.info(f"Change stream closed on {table} for user {current_user.id}")

    return EventSourceResponse(event_generator())
