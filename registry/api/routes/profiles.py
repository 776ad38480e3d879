"""Client profile endpoints: CRUD, search, holding reviews and exports."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from registry.api.deps import get_profile_service
from registry.api.routes.auth import STAFF_ROLES, AuthenticatedUser, require_role
from registry.schemas.profile import (
    ClientProfileInput,
    ClientProfilePage,
    ClientProfileRead,
    ProfileStatus,
    ReviewRequest,
    ReviewStats,
)
from registry.services.profiles import ExportFile, ProfileService

router = APIRouter()

staff_only = require_role(*STAFF_ROLES)


def _attachment(export_file: ExportFile) -> Response:
    return Response(
        content=export_file.content,
        media_type=export_file.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export_file.filename}"'},
    )


@router.get("", response_model=ClientProfilePage, response_model_by_alias=True)
def list_profiles(
    q: str | None = Query(default=None, description="Matches shareholder name, PAN or company name"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    profile_status: ProfileStatus | None = Query(default=None, alias="status"),
    service: ProfileService = Depends(get_profile_service),
    _: AuthenticatedUser = Depends(staff_only),
) -> ClientProfilePage:
    result = service.list_profiles(query=q, page=page, limit=limit, status=profile_status)
    return ClientProfilePage(data=result.items, page=result.page, limit=result.limit, total=result.total)


@router.get("/export", summary="Download every profile as a spreadsheet")
def export_all_profiles(
    service: ProfileService = Depends(get_profile_service),
    _: AuthenticatedUser = Depends(staff_only),
) -> Response:
    return _attachment(service.export_all_profiles())


@router.post(
    "",
    response_model=ClientProfileRead,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
def create_profile(
    payload: ClientProfileInput,
    service: ProfileService = Depends(get_profile_service),
    _: AuthenticatedUser = Depends(staff_only),
) -> ClientProfileRead:
    return service.create_profile(payload)


@router.get("/{profile_id}", response_model=ClientProfileRead, response_model_by_alias=True)
def get_profile(
    profile_id: str,
    service: ProfileService = Depends(get_profile_service),
    _: AuthenticatedUser = Depends(staff_only),
) -> ClientProfileRead:
    return service.get_profile(profile_id)


@router.put("/{profile_id}", response_model=ClientProfileRead, response_model_by_alias=True)
def update_profile(
    profile_id: str,
    payload: ClientProfileInput,
    service: ProfileService = Depends(get_profile_service),
    _: AuthenticatedUser = Depends(staff_only),
) -> ClientProfileRead:
    return service.update_profile(profile_id, payload)


@router.delete("/{profile_id}")
def delete_profile(
    profile_id: str,
    service: ProfileService = Depends(get_profile_service),
    _: AuthenticatedUser = Depends(staff_only),
) -> dict[str, bool]:
    service.delete_profile(profile_id)
    return {"success": True}


@router.put("/{profile_id}/review", response_model=ClientProfileRead, response_model_by_alias=True)
def review_holding(
    profile_id: str,
    payload: ReviewRequest,
    service: ProfileService = Depends(get_profile_service),
    user: AuthenticatedUser = Depends(staff_only),
) -> ClientProfileRead:
    return service.review_holding(
        profile_id,
        payload,
        status=payload.status,
        notes=payload.notes,
        reviewer=user.username,
    )


@router.get("/{profile_id}/review-stats", response_model=ReviewStats, response_model_by_alias=True)
def review_stats(
    profile_id: str,
    service: ProfileService = Depends(get_profile_service),
    _: AuthenticatedUser = Depends(staff_only),
) -> ReviewStats:
    return service.review_summary(profile_id)


@router.get("/{profile_id}/export", summary="Download one profile as a spreadsheet")
def export_profile(
    profile_id: str,
    service: ProfileService = Depends(get_profile_service),
    _: AuthenticatedUser = Depends(staff_only),
) -> Response:
    return _attachment(service.export_profile(profile_id))


__all__ = [
    "create_profile",
    "delete_profile",
    "export_all_profiles",
    "export_profile",
    "get_profile",
    "list_profiles",
    "review_holding",
    "review_stats",
    "router",
    "update_profile",
]
