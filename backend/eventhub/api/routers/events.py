from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from eventhub.core.security import get_current_user_id
from eventhub.db.session import get_db
from eventhub.models.event import Event
from eventhub.schemas.event import DeleteResult, EventCreate, EventDetail, EventRead, EventUpdate
from eventhub.services.event_service import EventService
from eventhub.services.realtime import EVENT_DELETED, EVENT_UPDATED, RealtimeHub, get_hub

router = APIRouter(prefix="/events", tags=["events"])


def _serialize_event(event: Event) -> EventRead:
    return EventRead(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date,
        location=event.location,
        category=event.category,
        capacity=event.capacity,
        image_url=event.image_url,
        creator=event.creator_id,
        attendees=event.attendee_ids,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


def _wire(model: EventRead) -> dict:
    return model.model_dump(mode="json", by_alias=True)


@router.get("/{event_id}", response_model=EventDetail)
async def get_event(event_id: str, db: Session = Depends(get_db), hub: RealtimeHub = Depends(get_hub)):
    service = EventService(db)
    event = await run_in_threadpool(service.get_event, event_id)
    detail = EventDetail(
        **_serialize_event(event).model_dump(),
        current_viewers=hub.viewer_count(event_id),
    )
    # every read refreshes the copies held by the other viewers of this event
    await hub.publish_to_room(event_id, EVENT_UPDATED, _wire(detail))
    return detail


@router.get("", response_model=list[EventRead])
async def list_events(db: Session = Depends(get_db)):
    service = EventService(db)
    events = await run_in_threadpool(service.list_events)
    return [_serialize_event(e) for e in events]


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
    user_id: str = Depends(get_current_user_id),
):
    service = EventService(db)
    event = await run_in_threadpool(service.create_event, payload, user_id)
    event_data = _serialize_event(event)
    await hub.publish_to_all(EVENT_UPDATED, _wire(event_data))
    return event_data


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
    user_id: str = Depends(get_current_user_id),
):
    service = EventService(db)
    event = await run_in_threadpool(service.update_event, event_id, user_id, payload)
    event_data = _serialize_event(event)
    await hub.publish_to_room(event_id, EVENT_UPDATED, _wire(event_data))
    return event_data


@router.delete("/{event_id}", response_model=DeleteResult)
async def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
    user_id: str = Depends(get_current_user_id),
):
    service = EventService(db)
    deleted_id = await run_in_threadpool(service.delete_event, event_id, user_id)
    await hub.publish_to_all(EVENT_DELETED, deleted_id)
    return DeleteResult(message="Event deleted successfully")


@router.post("/{event_id}/join", response_model=EventRead)
async def join_event(
    event_id: str,
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
    user_id: str = Depends(get_current_user_id),
):
    service = EventService(db)
    event = await run_in_threadpool(service.join_event, event_id, user_id)
    event_data = _serialize_event(event)
    await hub.publish_to_room(event_id, EVENT_UPDATED, _wire(event_data))
    return event_data


@router.post("/{event_id}/leave", response_model=EventRead)
async def leave_event(
    event_id: str,
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
    user_id: str = Depends(get_current_user_id),
):
    service = EventService(db)
    event = await run_in_threadpool(service.leave_event, event_id, user_id)
    event_data = _serialize_event(event)
    await hub.publish_to_room(event_id, EVENT_UPDATED, _wire(event_data))
    return event_data
