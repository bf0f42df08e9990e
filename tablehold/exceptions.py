"""Error taxonomy shared by the reservation services."""


class ReservationError(Exception):
    """Base error for reservation operations.

    Every error carries a stable ``code`` that the API layer exposes to
    clients alongside the human-readable message.
    """

    code = "reservation_error"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidInputError(ReservationError):
    """Malformed or out-of-range input. Never retried automatically."""

    code = "invalid_input"
    status_code = 400


class ConflictError(ReservationError):
    """No table available at acquire time."""

    code = "conflict"
    status_code = 409


class NotFoundError(ReservationError):
    """Unknown region, reservation or hold."""

    code = "not_found"
    status_code = 404


class IneligibleError(ReservationError):
    """Party does not satisfy the region's capacity, children or smoking policy."""

    code = "ineligible"
    status_code = 422
