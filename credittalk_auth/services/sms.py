from __future__ import annotations

import base64
import logging
import re
import socket
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from credittalk_auth.config import Settings, settings
from credittalk_auth.errors import DeliveryError

LOGGER = logging.getLogger(__name__)

TWILIO_MESSAGES_ENDPOINT = (
    "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
)


class SmsSender(Protocol):
    def send(self, to_e164: str, body: str) -> None: ...


class TwilioSmsSender:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        messaging_service_sid: str = "",
        from_number: str = "",
        timeout_seconds: float = 5,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._messaging_service_sid = messaging_service_sid
        self._from_number = from_number
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "TwilioSmsSender":
        return cls(
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            messaging_service_sid=config.twilio_messaging_service_sid,
            from_number=config.twilio_phone_number,
            timeout_seconds=config.sms_timeout_seconds,
        )

    def send(self, to_e164: str, body: str) -> None:
        if not self._account_sid or not self._auth_token:
            raise DeliveryError("Twilio is not configured")

        fields = {"To": to_e164, "Body": body}
        if self._messaging_service_sid:
            fields["MessagingServiceSid"] = self._messaging_service_sid
        elif self._from_number:
            fields["From"] = self._from_number
        else:
            raise DeliveryError("Twilio sender is not configured")

        LOGGER.info("Sending verification SMS to=%s", to_e164)
        endpoint = TWILIO_MESSAGES_ENDPOINT.format(account_sid=self._account_sid)
        token = base64.b64encode(
            f"{self._account_sid}:{self._auth_token}".encode("utf-8")
        ).decode("ascii")
        request = Request(
            endpoint,
            data=urlencode(fields).encode("utf-8"),
            headers={
                "Authorization": f"Basic {token}",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            method="POST",
        )
        try:
            with urlopen(request, timeout=self._timeout_seconds) as response:
                response.read()
        except HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            LOGGER.error("Twilio API error to=%s response=%s", to_e164, error_body)
            raise DeliveryError("Failed to send verification SMS") from exc
        except (URLError, socket.timeout) as exc:
            LOGGER.error("Twilio API unreachable to=%s error=%s", to_e164, exc)
            raise DeliveryError("Failed to reach SMS gateway") from exc


def to_e164(phone: str, country_code: str = settings.phone_country_code) -> str:
    digits = re.sub(r"\D", "", phone)
    if not digits:
        raise DeliveryError("Phone number is missing")
    country = re.sub(r"\D", "", country_code)
    if not country:
        raise DeliveryError("Country code is not configured")
    if digits.startswith("0"):
        digits = digits[1:]
    return f"+{country}{digits}"


def build_otp_body(code: str, brand: str = settings.sms_brand) -> str:
    return f"[{brand}] Verification code: {code}"
