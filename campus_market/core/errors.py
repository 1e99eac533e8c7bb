from fastapi import HTTPException


class AppError(HTTPException):
    """Service-level failure carrying the HTTP status it maps to."""

    def __init__(self, status_code: int, message: str):
        super().__init__(status_code=status_code, detail=message)
        self.message = message

    def __repr__(self):
        return f"<AppError(status_code={self.status_code}, message={self.message})>"
