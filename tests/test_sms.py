import io
from urllib.error import HTTPError, URLError
from urllib.parse import parse_qs

import pytest

from credittalk_auth.errors import DeliveryError
from credittalk_auth.services import sms as sms_module
from credittalk_auth.services.sms import TwilioSmsSender, build_otp_body, to_e164


class _Response(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _sender(**overrides) -> TwilioSmsSender:
    options = {
        "account_sid": "AC123",
        "auth_token": "secret",
        "messaging_service_sid": "MG456",
        "timeout_seconds": 3,
    }
    options.update(overrides)
    return TwilioSmsSender(**options)


def test_to_e164_drops_trunk_zero():
    assert to_e164("01012345678", "82") == "+821012345678"
    assert to_e164("010-1234-5678", "+82") == "+821012345678"
    assert to_e164("2125550100", "1") == "+12125550100"


def test_to_e164_requires_digits():
    with pytest.raises(DeliveryError):
        to_e164("", "82")


def test_build_otp_body():
    assert build_otp_body("482913", "CreditTalk") == "[CreditTalk] Verification code: 482913"


def test_send_posts_form_to_twilio(monkeypatch):
    captured = {}

    def fake_urlopen(request, timeout):
        captured["request"] = request
        captured["timeout"] = timeout
        return _Response(b"{}")

    monkeypatch.setattr(sms_module, "urlopen", fake_urlopen)

    _sender().send("+821012345678", "[CreditTalk] Verification code: 123456")

    request = captured["request"]
    assert request.full_url.endswith("/Accounts/AC123/Messages.json")
    assert request.get_method() == "POST"
    assert request.get_header("Authorization").startswith("Basic ")
    form = parse_qs(request.data.decode("utf-8"))
    assert form["To"] == ["+821012345678"]
    assert form["MessagingServiceSid"] == ["MG456"]
    assert "From" not in form
    assert captured["timeout"] == 3


def test_send_uses_from_number_without_messaging_service(monkeypatch):
    captured = {}

    def fake_urlopen(request, timeout):
        captured["form"] = parse_qs(request.data.decode("utf-8"))
        return _Response(b"{}")

    monkeypatch.setattr(sms_module, "urlopen", fake_urlopen)

    _sender(messaging_service_sid="", from_number="+15005550006").send("+821012345678", "hi")

    assert captured["form"]["From"] == ["+15005550006"]


def test_send_without_configuration_fails():
    with pytest.raises(DeliveryError):
        TwilioSmsSender(account_sid="", auth_token="").send("+821012345678", "hi")
    with pytest.raises(DeliveryError):
        _sender(messaging_service_sid="", from_number="").send("+821012345678", "hi")


def test_send_maps_http_error(monkeypatch):
    def fake_urlopen(request, timeout):
        raise HTTPError(
            request.full_url, 400, "Bad Request", {}, io.BytesIO(b'{"message": "bad"}')
        )

    monkeypatch.setattr(sms_module, "urlopen", fake_urlopen)

    with pytest.raises(DeliveryError, match="Failed to send"):
        _sender().send("+821012345678", "hi")


def test_send_maps_network_error(monkeypatch):
    def fake_urlopen(request, timeout):
        raise URLError("timed out")

    monkeypatch.setattr(sms_module, "urlopen", fake_urlopen)

    with pytest.raises(DeliveryError, match="Failed to reach"):
        _sender().send("+821012345678", "hi")
