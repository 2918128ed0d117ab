"""Error types raised by the brief engine.

Each error carries the HTTP status and error code the transport maps it to.
"""


class BriefQueryError(Exception):
    """A query could not be answered."""

    status_code = 500
    error_code = "QUERY_FAILED"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidQueryError(BriefQueryError):
    """The request failed validation before any data was read."""

    status_code = 400
    error_code = "INVALID_REQUEST"


class HotelNotFoundError(BriefQueryError):
    """No canonical record exists for the requested hotel."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, hotel_id: str):
        super().__init__(f"Hotel not found: {hotel_id}")
        self.hotel_id = hotel_id


class DatasetLoadError(BriefQueryError):
    """A dataset file is missing, unreadable or fails schema validation."""
