from pydantic import BaseModel, Field


class LinkTokenResponse(BaseModel):
    """Short-lived handle used by the frontend to open the account-linking flow."""
    link_token: str


class ExchangeTokenRequest(BaseModel):
    public_token: str = Field(..., min_length=1, description="Public handle returned by the linking flow")


class ExchangeTokenResponse(BaseModel):
    success: bool
