"""Credential-delivery SMS gateway configuration and responses."""

from typing import Dict, Optional

from pydantic import BaseModel, Field

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SmsProviderConfig(BaseModel):
    """Messaging provider credentials, injected into the gateway at construction."""

    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    from_number: Optional[str] = None
    api_base: str = TWILIO_API_BASE
    timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def messages_url(self) -> str:
        return f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"


class GatewayResponse(BaseModel):
    status_code: int
    body: object                            # JSON dict, or "ok" for preflight
    headers: Dict[str, str] = {}
