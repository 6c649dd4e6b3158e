import pytest

from conftest import PHONE, signup_data
from credittalk_auth.errors import NotFoundError, ValidationError
from credittalk_auth.services.users import mask_email


@pytest.fixture
def registered(issuer, committer, sms):
    issuer.issue(PHONE)
    return committer.commit(signup_data(otp=sms.last_code()))


@pytest.mark.parametrize(
    ("email", "masked"),
    [
        ("victim.helper@example.com", "vic**********@example.com"),
        ("abcd@example.com", "abc*@example.com"),
        ("abc@example.com", "a**@example.com"),
        ("a@example.com", "a**@example.com"),
        ("", ""),
    ],
)
def test_mask_email(email, masked):
    assert mask_email(email) == masked


def test_email_availability(lookup, registered):
    assert lookup.email_available("someone.else@example.com") is True
    assert lookup.email_available("victim.helper@example.com") is False
    assert lookup.email_available("  Victim.Helper@Example.com ") is False


@pytest.mark.parametrize("email", [None, "", "   "])
def test_email_availability_requires_email(lookup, email):
    with pytest.raises(ValidationError):
        lookup.email_available(email)


def test_nickname_availability(lookup, registered):
    assert lookup.nickname_available("newbie") is True
    assert lookup.nickname_available(" minji ") is False


@pytest.mark.parametrize("nickname", [None, "", "m", " m "])
def test_nickname_availability_requires_two_characters(lookup, nickname):
    with pytest.raises(ValidationError):
        lookup.nickname_available(nickname)


def test_find_masked_email(lookup, registered):
    assert lookup.find_masked_email(" Kim Minji ", PHONE) == "vic**********@example.com"


def test_find_masked_email_without_match(lookup, registered):
    with pytest.raises(NotFoundError):
        lookup.find_masked_email("Kim Minji", "01000000000")


def test_find_masked_email_requires_both_fields(lookup):
    with pytest.raises(ValidationError):
        lookup.find_masked_email("Kim Minji", None)


def test_availability_routes(client, registered):
    response = client.post("/check-email-availability", json={"email": "victim.helper@example.com"})
    assert response.status_code == 200
    assert response.json() == {"available": False}

    response = client.post("/check-nickname-availability", json={"nickname": "fresh"})
    assert response.json() == {"available": True}

    response = client.post("/check-nickname-availability", json={"nickname": "x"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_find_email_route(client, registered):
    response = client.post(
        "/find-email-by-profile", json={"name": "Kim Minji", "phoneNumber": PHONE}
    )
    assert response.status_code == 200
    assert response.json() == {"email": "vic**********@example.com"}

    response = client.post(
        "/find-email-by-profile", json={"name": "Nobody", "phoneNumber": PHONE}
    )
    assert response.status_code == 404
    assert response.json() == {"error": "No matching user information."}
