"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field


class RevalidateRequest(BaseModel):
    """Request DTO for tag-based revalidation.

    Sent by content-mutation paths after writing to the question bank.
    """

    tag: str = Field(..., description="Revalidation tag, e.g. 'examtracker'", min_length=1)


class InvalidateKeyRequest(BaseModel):
    """Request DTO for dropping a single cache key."""

    key: str = Field(..., description="The exact cache key to invalidate", min_length=1)
