from fastapi import HTTPException, status

from shared_types.errors import DuplicateExceptionError, MalformedScheduleError


def schedule_error_to_http(error: ValueError) -> HTTPException:
    """
    Map a rejected settings write to an HTTP error.

    Duplicate exceptions are a 409 so clients can retry with replace=true;
    everything else is a 400 whose detail names the offending weekday/date and
    interval pair when known.
    """
    if isinstance(error, DuplicateExceptionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.to_dict())
    if isinstance(error, MalformedScheduleError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.to_dict())
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"message": str(error)})
