# backend/app/errors.py
from typing import List, Optional


class ShowtixError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class InvalidRequest(ShowtixError):
    status_code = 400


class SeatsUnavailable(ShowtixError):
    status_code = 400

    def __init__(self, seats: List[str], message: str = "Some selected seats are already booked"):
        super().__init__(message)
        self.seats = list(seats)

    def to_dict(self) -> dict:
        return {"detail": self.message, "seats": self.seats}


class NotFound(ShowtixError):
    status_code = 404


class Unauthenticated(ShowtixError):
    status_code = 401

    def __init__(self, message: str = "not authenticated"):
        super().__init__(message)


class DuplicateKey(ShowtixError):
    """A unique key (username, booking id) is already taken."""

    status_code = 409

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class BackendUnavailable(ShowtixError):
    """The persistent backend failed; the hybrid coordinator absorbs this."""

    status_code = 503
