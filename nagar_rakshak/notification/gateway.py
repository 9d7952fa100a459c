"""
Notification Gateway — delivers login credentials to a new user by SMS.

Behavioral Contract:
- Stateless across calls; provider configuration is injected at construction.
- Rejects requests missing phone, username or password, and phones that are
  not "+91" followed by exactly 10 digits.
- With provider credentials configured, submits the fixed-template message
  to the provider's send-message endpoint using basic auth. A non-2xx reply
  becomes a gateway error carrying the provider's message when it has one.
- Without credentials, writes the message to the log instead and still
  reports success: success only means the submission path completed.
- Every failure maps to a 400 response with a descriptive error. Preflight
  requests get an unconditional "ok".

The username and password travel and get logged in plaintext. That is the
existing delivery contract, kept as-is and flagged in DESIGN.md.
"""

import json
import logging
import re
from typing import Optional

import requests

from nagar_rakshak.models.notification import GatewayResponse, SmsProviderConfig

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+91[0-9]{10}$")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

MESSAGE_TEMPLATE = (
    "Welcome to Nagar Rakshak! Your username is {username} and your password "
    "is {password}. Please keep them safe."
)
SUCCESS_MESSAGE = "Credentials sent successfully."


class GatewayError(Exception):
    """Raised for any request the gateway cannot complete."""
    pass


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_PATTERN.fullmatch(phone))


class NotificationGateway:
    def __init__(
        self,
        config: Optional[SmsProviderConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or SmsProviderConfig()
        self.session = session or requests.Session()

    # === HTTP HANDLER ===

    def handle(self, method: str, body) -> GatewayResponse:
        """
        Handle one HTTP request. ``body`` is the raw request body (bytes or
        str) or an already-decoded JSON object.
        """
        if method.upper() == "OPTIONS":
            return GatewayResponse(status_code=200, body="ok", headers=dict(CORS_HEADERS))

        headers = {**CORS_HEADERS, "Content-Type": "application/json"}
        try:
            payload = self._decode(body)
            self.send_credentials(
                payload.get("phone"), payload.get("username"), payload.get("password")
            )
        except GatewayError as e:
            logger.error("Error sending credentials: %s", e)
            return GatewayResponse(
                status_code=400,
                body={"success": False, "error": str(e)},
                headers=headers,
            )

        return GatewayResponse(
            status_code=200,
            body={"success": True, "message": SUCCESS_MESSAGE},
            headers=headers,
        )

    def _decode(self, body) -> dict:
        if isinstance(body, dict):
            return body
        try:
            payload = json.loads(body or b"")
        except (TypeError, ValueError) as e:
            raise GatewayError(f"Invalid JSON body: {e}") from e
        if not isinstance(payload, dict):
            raise GatewayError("Request body must be a JSON object.")
        return payload

    # === DELIVERY ===

    def send_credentials(self, phone, username, password) -> bool:
        """
        Validate and deliver. Returns True when an SMS was submitted to the
        provider, False when the log fallback was used.
        """
        if not phone or not username or not password:
            raise GatewayError("Missing required parameters: phone, username, or password.")
        if not isinstance(phone, str) or not is_valid_phone(phone):
            raise GatewayError(
                "Invalid phone number format. Expected '+91' followed by 10 digits."
            )

        message = MESSAGE_TEMPLATE.format(username=username, password=password)

        if not self.config.is_configured:
            self._log_fallback(phone, username, password)
            return False

        self._submit(phone, message)
        return True

    def _submit(self, phone: str, message: str) -> None:
        try:
            response = self.session.post(
                self.config.messages_url,
                data={"To": phone, "From": self.config.from_number, "Body": message},
                auth=(self.config.account_sid, self.config.auth_token),
                timeout=self.config.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise GatewayError(f"Twilio Error: {e}") from e

        if not response.ok:
            raise GatewayError(f"Twilio Error: {self._provider_message(response)}")
        logger.info("Credential SMS submitted to %s", phone)

    @staticmethod
    def _provider_message(response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("message"):
            return data["message"]
        return "Failed to send SMS."

    @staticmethod
    def _log_fallback(phone: str, username: str, password: str) -> None:
        logger.warning("--- Twilio credentials not found. Logging SMS content instead. ---")
        logger.warning("--- SMS to %s ---", phone)
        logger.warning("Welcome to Nagar Rakshak!")
        logger.warning("Your username: %s", username)
        logger.warning("Your password: %s", password)
        logger.warning("--- End of SMS ---")
