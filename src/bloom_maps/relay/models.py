"""Data models for the NASA POWER relay."""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class PowerProperties(BaseModel):
    """`properties` block of a POWER daily point response."""
    parameter: Dict[str, Dict[str, Optional[float]]] = Field(
        ..., description="Daily values keyed by parameter then YYYYMMDD"
    )


class PowerDailyResponse(BaseModel):
    """Raw response from the POWER daily point API.

    Only the parts the service reads are validated; everything else in the
    payload is passed through untouched.
    """
    properties: PowerProperties = Field(..., description="Series payload")


class RelayErrorResponse(BaseModel):
    """Error body returned by relay endpoints."""
    error: str = Field(..., description="Error message")
