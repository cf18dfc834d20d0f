from pydantic import BaseModel, ConfigDict
from typing import Optional


class VendorErrorBody(BaseModel):
    """The `error` object both vendors put in a non-2xx response body."""
    model_config = ConfigDict(extra="allow")

    message: Optional[str] = None
    type: Optional[str] = None


class VendorErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    error: Optional[VendorErrorBody] = None
