from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Missing or contradictory input."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough privileges", status_code: int = status.HTTP_403_FORBIDDEN):
        super().__init__(status_code=status_code, detail=detail)


class StoreError(HTTPException):
    """Persistence failure. The message stays generic for callers."""

    def __init__(self, detail: str = "Store failure"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
