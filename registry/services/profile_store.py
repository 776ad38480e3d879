"""Persistence of client profile documents."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from registry.core.errors import DuplicateProfileError, ProfileNotFoundError, StoreUnavailableError
from registry.models import ClientProfileRow
from registry.models.base import utcnow
from registry.schemas.profile import ClientProfileInput, ClientProfileRead

# Separator for the mirrored company names; never valid inside a single name after trimming.
_COMPANY_SEPARATOR = "\n"
_CLIENT_ID_CONSTRAINT = "uq_client_profiles_client_id"


@dataclass(slots=True, frozen=True)
class ProfileFilter:
    query: str | None = None
    status: str | None = None


@dataclass(slots=True, frozen=True)
class ProfilePage:
    items: list[ClientProfileRead]
    page: int
    limit: int
    total: int


def to_read_model(row: ClientProfileRow) -> ClientProfileRead:
    return ClientProfileRead.model_validate(
        {**row.document, "id": row.id, "createdAt": row.created_at, "updatedAt": row.updated_at}
    )


def _mirror_columns(row: ClientProfileRow, profile: ClientProfileInput) -> None:
    row.client_id = profile.client_id
    row.pan_number = profile.pan_number
    row.shareholder_name = profile.shareholder_name.name1
    row.company_names = _COMPANY_SEPARATOR.join(holding.company_name for holding in profile.companies)
    row.status = profile.status.value
    row.email = profile.email_id
    row.document = profile.to_document()


def _is_client_id_conflict(exc: IntegrityError) -> bool:
    # PostgreSQL names the constraint; SQLite names the column.
    message = str(exc.orig)
    return _CLIENT_ID_CONSTRAINT in message or "client_profiles.client_id" in message


@contextmanager
def _translate_errors(session: Session, *, client_id: str | None = None) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        session.rollback()
        if not _is_client_id_conflict(exc):
            raise
        raise DuplicateProfileError(f"Client profile with clientId '{client_id}' already exists") from exc
    except (OperationalError, InterfaceError) as exc:
        session.rollback()
        raise StoreUnavailableError("Profile store is unavailable") from exc


class ProfileStore:
    """Stores one row per client profile with the holdings embedded in its document."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def insert(self, profile: ClientProfileInput) -> ClientProfileRead:
        row = ClientProfileRow()
        _mirror_columns(row, profile)
        with _translate_errors(self._session, client_id=profile.client_id):
            self._session.add(row)
            self._session.commit()
            self._session.refresh(row)
        return to_read_model(row)

    def find_by_id(self, profile_id: str) -> ClientProfileRead:
        return to_read_model(self._get_row(profile_id))

    def find_many(self, profile_filter: ProfileFilter, *, page: int, limit: int) -> ProfilePage:
        statement = self._apply_filter(select(ClientProfileRow), profile_filter)
        count_statement = self._apply_filter(select(func.count(ClientProfileRow.id)), profile_filter)
        statement = (
            statement.order_by(ClientProfileRow.created_at.desc(), ClientProfileRow.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        with _translate_errors(self._session):
            rows = self._session.scalars(statement).all()
            total = self._session.scalar(count_statement) or 0
        return ProfilePage(items=[to_read_model(row) for row in rows], page=page, limit=limit, total=total)

    def find_all(self) -> list[ClientProfileRead]:
        statement = select(ClientProfileRow).order_by(
            ClientProfileRow.created_at.desc(), ClientProfileRow.id.desc()
        )
        with _translate_errors(self._session):
            rows = self._session.scalars(statement).all()
        return [to_read_model(row) for row in rows]

    def replace(self, profile_id: str, profile: ClientProfileInput) -> ClientProfileRead:
        row = self._get_row(profile_id)
        _mirror_columns(row, profile)
        row.updated_at = utcnow()
        with _translate_errors(self._session, client_id=profile.client_id):
            self._session.commit()
            self._session.refresh(row)
        return to_read_model(row)

    def delete_by_id(self, profile_id: str) -> None:
        row = self._get_row(profile_id)
        with _translate_errors(self._session):
            self._session.delete(row)
            self._session.commit()

    def ping(self) -> None:
        with _translate_errors(self._session):
            self._session.execute(select(1))

    def _get_row(self, profile_id: str) -> ClientProfileRow:
        with _translate_errors(self._session):
            row = self._session.get(ClientProfileRow, profile_id)
        if row is None:
            raise ProfileNotFoundError(f"Client profile '{profile_id}' not found")
        return row

    @staticmethod
    def _apply_filter(statement: Select, profile_filter: ProfileFilter) -> Select:
        query = (profile_filter.query or "").strip()
        if query:
            statement = statement.where(
                or_(
                    ClientProfileRow.shareholder_name.icontains(query, autoescape=True),
                    ClientProfileRow.pan_number.icontains(query, autoescape=True),
                    ClientProfileRow.company_names.icontains(query, autoescape=True),
                )
            )
        if profile_filter.status:
            statement = statement.where(ClientProfileRow.status == profile_filter.status)
        return statement


__all__ = ["ProfileFilter", "ProfilePage", "ProfileStore", "to_read_model"]
