from __future__ import annotations

from fastapi import HTTPException, status


class EventNotFound(HTTPException):
    def __init__(self, detail: str = "Event not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class NotEventCreator(EventNotFound):
    """Raised when someone other than the creator mutates an event.

    Reported as a 404 so callers cannot probe which ids exist.
    """

    def __init__(self) -> None:
        super().__init__(detail="Event not found or unauthorized")


class AlreadyJoined(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail="Already joined this event")


class EventFull(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail="Event is full")


class NotJoined(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail="Not joined this event")


class NotAuthenticated(HTTPException):
    def __init__(self, detail: str = "Token is not valid") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
