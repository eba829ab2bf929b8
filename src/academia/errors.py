from fastapi import HTTPException


class ApiError(HTTPException):
    """HTTP error rendered to clients as ``{"erro": detail}``."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(status_code=status_code, detail=message)
