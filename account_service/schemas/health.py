"""Pydantic schema for the health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus database reachability, for load balancers and monitoring."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (dev or prod)")
    version: str = Field(description="Running API version")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether a trivial query against the user store succeeded",
    )
