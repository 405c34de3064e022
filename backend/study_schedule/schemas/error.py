from pydantic import BaseModel


class ErrorEnvelope(BaseModel):
    """Body of every error response."""

    status_code: int
    error_kind: str
    message: str
