"""
Shared schema primitives used across the API.
"""
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict

# Last 1 / 7 / 30 local calendar days, ending today.
RangeKey = Literal["today", "week", "month"]


class ErrorResponse(BaseModel):
    """Error envelope returned for every 4xx/5xx response."""
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    details: Optional[dict[str, Any]] = None
