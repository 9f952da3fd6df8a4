# schemas.py
"""
Pydantic models for the CloudLink client.

Defines the connection settings, the per-call request target and the
fully resolved request options that flow through the request pipeline.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ClientConfig(BaseModel):
    """Connection parameters for a CloudLink server. Read-only once built."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(description="Base URL of the CloudLink server")
    username: str = Field(description="User name for basic authentication")
    password: str = Field(description="Password for basic authentication")
    verify_tls: bool = Field(
        default=False, description="Verify the server TLS certificate"
    )
    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Request timeout in seconds, None waits indefinitely",
    )


FormValue = str | int | float | bool


class RequestTarget(BaseModel):
    """Relative endpoint path, HTTP method and form payload for one call."""

    path: str = Field(description="Path relative to the configured host")
    method: Literal["GET", "POST"] = Field(default="GET")
    form: dict[str, FormValue] = Field(default_factory=dict)


class RequestOptions(BaseModel):
    """Everything needed to dispatch a single request."""

    model_config = ConfigDict(frozen=True)

    method: Literal["GET", "POST"]
    url: str
    auth: tuple[str, str]
    verify_tls: bool
    timeout: Optional[float] = None
    data: dict[str, str] = Field(default_factory=dict)


class Feedback(BaseModel):
    """Customer feedback on an order, sent as a JSON string."""

    productId: Any = Field(description="ID of the reviewed order")
    like: bool = Field(description="Positive or negative feedback")
    feedback: Optional[str] = Field(default="", description="Free text feedback")
