"""Pydantic schemas for API request/response models.

This module defines the data validation and serialization schemas used by
the share endpoints of the Passwords API.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TokenData(BaseModel):
    """Schema for token data validation."""

    user_id: Optional[str] = None


class HealthCheckResponse(BaseModel):
    """Schema for health check responses."""

    status: str = Field(..., description="Overall service status")
    message: str = Field(..., description="Human-readable status message")
    timestamp: datetime
    database_connected: bool


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    status: str = Field("error", description="Always 'error'")
    message: str = Field(..., description="Human-readable error message")


# Share schemas
class ShareCreate(BaseModel):
    """Schema for sharing a password with a user."""

    password: str = Field(..., min_length=1, description="UUID of the password to share")
    receiver: str = Field(..., min_length=1, description="User id of the receiver")
    type: str = Field("user", description="Share type, only 'user' is supported")
    expires: Optional[int] = Field(
        None, description="Unix time the share expires at, 0 or null for never"
    )
    editable: bool = Field(False, description="Whether the receiver may edit the password")
    shareable: bool = Field(
        False, description="Whether the receiver may share the password again"
    )


class ShareUpdate(BaseModel):
    """Schema for updating an existing share."""

    id: str = Field(..., min_length=1, description="UUID of the share")
    expires: Optional[int] = Field(
        None, description="Unix time the share expires at, 0 or null for never"
    )
    editable: bool = False
    shareable: bool = True


class ShareDelete(BaseModel):
    """Schema for deleting a share."""

    id: str = Field(..., min_length=1, description="UUID of the share")


class ShareIdResponse(BaseModel):
    """Schema for responses that only identify a share."""

    id: str


class SharingInfoResponse(BaseModel):
    """Schema for the sharing capabilities of the current user."""

    enabled: bool
    resharing: bool
    types: List[str]


class SharePartyResponse(BaseModel):
    """Owner or receiver of a share."""

    id: str
    name: str


class ShareResponse(BaseModel):
    """Schema for share API responses."""

    id: str
    created: int
    updated: int
    expires: Optional[int] = None
    editable: bool
    shareable: bool
    updatePending: bool
    password: Optional[str] = None
    owner: SharePartyResponse
    receiver: SharePartyResponse
