from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from registry.core.config import get_settings
from registry.models import User, UserRole, UserStatus
from registry.schemas.profile import ClientProfileInput, ClientProfileRead
from registry.services import credentials
from registry.services.credentials import (
    PASSWORD_ALPHABET,
    CredentialIssuer,
    generate_password,
    generate_username,
    hash_password,
    username_base,
    verify_password,
)
from registry.services.mailer import DeliveryResult
from registry.services.profile_store import ProfileStore


class RecordingMailer:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def send_credentials(self, **kwargs: Any) -> DeliveryResult:
        self.calls.append(kwargs)
        return DeliveryResult(sent=True)


@pytest.fixture()
def stored_profile(db_session: Session, profile_payload: Callable[..., dict[str, Any]]) -> ClientProfileRead:
    return ProfileStore(db_session).insert(ClientProfileInput.model_validate(profile_payload()))


def test_password_hash_round_trip() -> None:
    hashed = hash_password("s3cret-value", rounds=4)

    assert hashed != "s3cret-value"
    assert verify_password("s3cret-value", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("", hashed)


def test_generated_password_uses_unambiguous_alphabet() -> None:
    password = generate_password(12)

    assert len(password) == 12
    assert set(password) <= set(PASSWORD_ALPHABET)
    assert not set(password) & set("IOl")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Asha Rao", "asha"),
        ("  O'Brien-Smith Jr", "obriensmith"),
        ("Maximiliananderson Rao", "maximilianan"),
        ("", "user"),
        (None, "user"),
        ("!!!", "user"),
    ],
)
def test_username_base(name: str | None, expected: str) -> None:
    assert username_base(name) == expected


def test_generate_username_skips_taken_candidates(monkeypatch: pytest.MonkeyPatch) -> None:
    suffixes = iter(["1234", "1234", "5678"])
    monkeypatch.setattr(credentials, "_numeric_suffix", lambda digits: next(suffixes))

    taken = {"asha1234"}
    username = generate_username("Asha Rao", taken.__contains__)

    assert username == "asha5678"


def test_generate_username_widens_suffix_after_repeated_collisions(monkeypatch: pytest.MonkeyPatch) -> None:
    requested: list[int] = []

    def fake_suffix(digits: int) -> str:
        requested.append(digits)
        return "0" * digits

    monkeypatch.setattr(credentials, "_numeric_suffix", fake_suffix)

    username = generate_username("Asha", lambda candidate: candidate == "asha0000")

    assert username == "asha000000"
    assert requested[:10] == [4] * 10
    assert requested[10] == 6


def test_issuer_creates_client_account_and_mails_password(
    db_session: Session, stored_profile: ClientProfileRead
) -> None:
    mailer = RecordingMailer()
    issuer = CredentialIssuer(db_session, mailer=mailer)  # type: ignore[arg-type]

    issued = issuer(stored_profile)

    account = db_session.scalars(select(User).where(User.profile_id == stored_profile.id)).one()
    assert account.username == issued.username
    assert re.fullmatch(r"asha\d{4}", account.username)
    assert account.role == UserRole.CLIENT
    assert account.status == UserStatus.ACTIVE
    assert account.email == "asha@example.com"
    assert account.hashed_password != issued.password
    assert verify_password(issued.password, account.hashed_password)
    assert len(issued.password) == get_settings().generated_password_length

    assert mailer.calls == [
        {
            "to": "asha@example.com",
            "name": "Asha Rao",
            "username": issued.username,
            "password": issued.password,
        }
    ]


def test_issuer_stores_account_email_in_lowercase(
    db_session: Session, profile_payload: Callable[..., dict[str, Any]]
) -> None:
    payload = profile_payload(emailId="Asha.Rao@Example.com")
    profile = ProfileStore(db_session).insert(ClientProfileInput.model_validate(payload))
    mailer = RecordingMailer()

    CredentialIssuer(db_session, mailer=mailer)(profile)  # type: ignore[arg-type]

    account = db_session.scalars(select(User).where(User.profile_id == profile.id)).one()
    assert account.email == "asha.rao@example.com"
    assert mailer.calls[0]["to"] == "Asha.Rao@Example.com"


def test_issuer_skips_mail_without_email(
    db_session: Session, profile_payload: Callable[..., dict[str, Any]]
) -> None:
    profile = ProfileStore(db_session).insert(ClientProfileInput.model_validate(profile_payload(emailId=None)))
    mailer = RecordingMailer()

    issued = CredentialIssuer(db_session, mailer=mailer)(profile)  # type: ignore[arg-type]

    assert issued.email is None
    assert mailer.calls == []


def test_issuer_hands_delivery_to_dispatcher(db_session: Session, stored_profile: ClientProfileRead) -> None:
    scheduled: list[tuple[Callable[..., Any], dict[str, Any]]] = []
    mailer = RecordingMailer()

    def dispatch(func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        scheduled.append((func, kwargs))

    CredentialIssuer(db_session, mailer=mailer, dispatch=dispatch)(stored_profile)  # type: ignore[arg-type]

    assert mailer.calls == []
    assert len(scheduled) == 1
    func, kwargs = scheduled[0]
    func(**kwargs)
    assert mailer.calls[0]["to"] == "asha@example.com"


def test_issued_credential_repr_hides_password(db_session: Session, stored_profile: ClientProfileRead) -> None:
    issued = CredentialIssuer(db_session, mailer=RecordingMailer())(stored_profile)  # type: ignore[arg-type]

    assert issued.password not in repr(issued)
