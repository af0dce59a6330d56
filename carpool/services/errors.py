from typing import Dict, Optional


class CarpoolError(Exception):
    pass


class ValidationError(CarpoolError):
    """A trip offer failed one or more field rules. Nothing was written."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("Invalid carpool: " + ", ".join(sorted(errors)))
        self.errors = dict(errors)


class NotFound(CarpoolError):
    def __init__(self, trip_id):
        super().__init__(f"Carpool {trip_id} not found")
        self.trip_id = trip_id


class SeatsExhausted(CarpoolError):
    def __init__(self, trip_id):
        super().__init__(f"No seats available for carpool {trip_id}")
        self.trip_id = trip_id


class VersionConflict(CarpoolError):
    def __init__(self, trip_id, observed_seats: int):
        super().__init__(f"Carpool {trip_id} changed since {observed_seats} seats were observed")
        self.trip_id = trip_id
        self.observed_seats = observed_seats


class TransportError(CarpoolError):
    """The backing store could not be reached. Not retried by the core."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
