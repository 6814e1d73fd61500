from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from eventhub.core.errors import AlreadyJoined, EventFull, EventNotFound, NotEventCreator, NotJoined
from eventhub.models.event import Event, EventAttendee
from eventhub.schemas.event import EventCreate, EventUpdate


class EventService:
    def __init__(self, db: Session):
        self.db = db

    def get_event(self, event_id: str) -> Event:
        event = self.db.get(Event, event_id)
        if not event:
            raise EventNotFound()
        return event

    def list_events(self) -> list[Event]:
        return (
            self.db.execute(select(Event).options(selectinload(Event.attendees)).order_by(Event.date.asc()))
            .scalars()
            .all()
        )

    def create_event(self, payload: EventCreate, creator_id: str) -> Event:
        event = Event(
            **payload.model_dump(),
            creator_id=creator_id,
            attendees=[EventAttendee(user_id=creator_id)],
        )
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def update_event(self, event_id: str, caller_id: str, patch: EventUpdate) -> Event:
        event = self._owned_event(event_id, caller_id)
        # capacity is deliberately not checked against the current attendee count
        for field, value in patch.model_dump(exclude_unset=True).items():
            setattr(event, field, value)
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def delete_event(self, event_id: str, caller_id: str) -> str:
        event = self._owned_event(event_id, caller_id)
        self.db.delete(event)
        self.db.commit()
        return event_id

    def join_event(self, event_id: str, user_id: str) -> Event:
        event = self.get_event(event_id)
        if user_id in event.attendee_ids:
            raise AlreadyJoined()
        # check-then-append; two concurrent joins may both pass this check
        if len(event.attendees) >= event.capacity:
            raise EventFull()

        event.attendees.append(EventAttendee(user_id=user_id))
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def leave_event(self, event_id: str, user_id: str) -> Event:
        event = self.get_event(event_id)
        attendee = next((a for a in event.attendees if a.user_id == user_id), None)
        if attendee is None:
            raise NotJoined()

        event.attendees.remove(attendee)
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def _owned_event(self, event_id: str, caller_id: str) -> Event:
        event = self.db.scalar(select(Event).where(Event.id == event_id, Event.creator_id == caller_id))
        if not event:
            raise NotEventCreator()
        return event
