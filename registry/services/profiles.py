"""Business logic for client profiles."""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from registry.core.config import Settings, get_settings
from registry.core.errors import ProfileValidationError
from registry.models import User
from registry.obs import (
    CREDENTIAL_FAILURE_COUNTER,
    PROFILES_CREATED_COUNTER,
    PROFILES_DELETED_COUNTER,
    REVIEW_TRANSITION_COUNTER,
    service_span,
)
from registry.schemas.profile import (
    ClientProfileBase,
    ClientProfileInput,
    ClientProfileRead,
    HoldingKey,
    ProfileStatus,
    ReviewStats,
    ReviewStatus,
)
from registry.services import export
from registry.services.profile_store import ProfileFilter, ProfilePage, ProfileStore
from registry.services.reviews import review_stats, set_review

logger = logging.getLogger(__name__)

PostCreateHook = Callable[[ClientProfileRead], Any]

_READ_ONLY_FIELDS = {"id", "created_at", "updated_at"}


@dataclass(slots=True, frozen=True)
class ExportFile:
    filename: str
    content: bytes
    media_type: str = export.XLSX_MEDIA_TYPE


def coerce_profile(payload: ClientProfileBase | Mapping[str, Any]) -> ClientProfileInput:
    """Validate and normalise a profile payload, reporting the first offending field."""

    if isinstance(payload, ClientProfileInput):
        return payload
    if isinstance(payload, ClientProfileBase):
        payload = payload.model_dump(by_alias=True, exclude=_READ_ONLY_FIELDS)
    try:
        return ClientProfileInput.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ProfileValidationError(f"{field}: {first['msg']}", field=field) from exc


class ProfileService:
    """Create/read/update/delete/search/export over the profile store.

    Hooks registered in ``post_create_hooks`` run after a profile is committed.
    Their failures are logged and swallowed: the created profile is returned
    regardless.
    """

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        post_create_hooks: Sequence[PostCreateHook] | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._store = ProfileStore(session)
        self._post_create_hooks = list(post_create_hooks or [])

    @property
    def store(self) -> ProfileStore:
        return self._store

    def create_profile(self, payload: ClientProfileBase | Mapping[str, Any]) -> ClientProfileRead:
        profile = coerce_profile(payload)
        with service_span("profiles.create", client_id=profile.client_id):
            created = self._store.insert(profile)
        PROFILES_CREATED_COUNTER.inc()
        logger.info(
            "client profile created",
            extra={"profile_id": created.id, "client_id": created.client_id, "holdings": len(created.companies)},
        )
        self._run_post_create_hooks(created)
        return created

    def get_profile(self, profile_id: str) -> ClientProfileRead:
        return self._store.find_by_id(profile_id)

    def update_profile(
        self, profile_id: str, payload: ClientProfileBase | Mapping[str, Any]
    ) -> ClientProfileRead:
        profile = coerce_profile(payload)
        with service_span("profiles.update", profile_id=profile_id):
            updated = self._store.replace(profile_id, profile)
        logger.info("client profile replaced", extra={"profile_id": profile_id})
        return updated

    def delete_profile(self, profile_id: str) -> None:
        self._store.delete_by_id(profile_id)
        PROFILES_DELETED_COUNTER.inc()
        # Companion accounts are left in place; report how many now point at a missing profile.
        retained = self._session.scalar(select(func.count(User.id)).where(User.profile_id == profile_id))
        logger.info(
            "client profile deleted",
            extra={"profile_id": profile_id, "retained_accounts": retained or 0},
        )

    def list_profiles(
        self,
        *,
        query: str | None = None,
        page: int | None = None,
        limit: int | None = None,
        status: ProfileStatus | str | None = None,
    ) -> ProfilePage:
        page = page if page and page > 0 else 1
        limit = limit if limit and limit > 0 else self._settings.default_page_size
        limit = min(limit, self._settings.max_page_size)
        status_value = status.value if isinstance(status, ProfileStatus) else status
        return self._store.find_many(ProfileFilter(query=query, status=status_value), page=page, limit=limit)

    def review_holding(
        self,
        profile_id: str,
        key: HoldingKey,
        *,
        status: ReviewStatus,
        notes: str = "",
        reviewer: str | None = None,
        now: datetime | None = None,
    ) -> ClientProfileRead:
        profile = self._store.find_by_id(profile_id)
        reviewed = set_review(profile, key, status, notes, reviewer, now=now)
        with service_span("profiles.review", profile_id=profile_id, status=status.value):
            saved = self._store.replace(profile_id, coerce_profile(reviewed))
        REVIEW_TRANSITION_COUNTER.labels(status=status.value).inc()
        logger.info(
            "holding review saved",
            extra={"profile_id": profile_id, "status": status.value, "reviewed_by": reviewer},
        )
        return saved

    def review_summary(self, profile_id: str) -> ReviewStats:
        return review_stats(self._store.find_by_id(profile_id).companies)

    def export_profile(self, profile_id: str) -> ExportFile:
        profile = self._store.find_by_id(profile_id)
        content = export.build_workbook([profile], sheet_title="Client Profile")
        return ExportFile(filename=export.profile_filename(profile), content=content)

    def export_all_profiles(self) -> ExportFile:
        profiles = self._store.find_all()
        content = export.build_workbook(profiles, sheet_title="All Client Profiles")
        return ExportFile(filename=export.all_profiles_filename(), content=content)

    def _run_post_create_hooks(self, created: ClientProfileRead) -> None:
        for hook in self._post_create_hooks:
            try:
                hook(created)
            except Exception:
                self._session.rollback()
                CREDENTIAL_FAILURE_COUNTER.labels(stage="provision").inc()
                logger.exception(
                    "post-create hook failed; profile kept",
                    extra={"profile_id": created.id, "hook": type(hook).__name__},
                )


__all__ = ["ExportFile", "PostCreateHook", "ProfileService", "coerce_profile"]
