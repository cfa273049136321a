from fastapi import HTTPException

from clubpass.core.errors import DomainError, ErrorKind

STATUS_BY_KIND = {
    ErrorKind.EVENT_NOT_FOUND: 404,
    ErrorKind.BOOKING_NOT_FOUND: 404,
    ErrorKind.EVENT_FULL: 409,
    ErrorKind.DUPLICATE_BOOKING: 409,
    ErrorKind.ALREADY_ATTENDED: 409,
    ErrorKind.EVENT_MISMATCH: 409,
    ErrorKind.INVALID_BATCH: 422,
    ErrorKind.SLOT_CONFLICT: 422,
    ErrorKind.CLUB_CONFLICT: 422,
    ErrorKind.DAILY_CAP_EXCEEDED: 422,
    ErrorKind.RESTRICTED_WINDOW_EXCEEDED: 422,
    ErrorKind.INVALID_TOKEN: 400,
    ErrorKind.MALFORMED_TOKEN: 400,
    ErrorKind.CONTENTION: 503,
}


def to_http_exception(exc: DomainError) -> HTTPException:
    headers = {"Retry-After": "1"} if exc.kind is ErrorKind.CONTENTION else None
    return HTTPException(
        status_code=STATUS_BY_KIND.get(exc.kind, 400),
        detail={"code": exc.kind.value, "message": exc.message},
        headers=headers,
    )
