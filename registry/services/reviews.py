"""Per-holding review workflow.

Every holding carries its own review state (``pending``, ``approved``,
``rejected`` or ``needs_attention``). Any state may move to any other through an
explicit review save; there is no terminal state. A save touches exactly one
holding: siblings and the owning profile's ``status`` are left as they were, and
``reviewedAt``/``reviewedBy`` are only ever written here.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import TypeVar

from registry.core.errors import HoldingNotFoundError, ProfileValidationError
from registry.schemas.profile import (
    ClientProfileBase,
    HoldingKey,
    Review,
    ReviewStats,
    ReviewStatus,
    ShareHolding,
)

ProfileT = TypeVar("ProfileT", bound=ClientProfileBase)

ALL_STATUSES = "all"


def _matches_pair(holding: ShareHolding, key: HoldingKey) -> bool:
    return (
        holding.company_name == (key.company_name or "").strip()
        and holding.isin_number == (key.isin_number or "").strip().upper()
    )


def locate_holding(holdings: Sequence[ShareHolding], key: HoldingKey) -> int:
    """Return the index of the holding addressed by ``key``.

    ``holdingId`` wins when supplied. Otherwise the ``(companyName, isinNumber)``
    pair must match exactly one holding.
    """

    if key.holding_id:
        for index, holding in enumerate(holdings):
            if holding.holding_id == key.holding_id:
                return index
        raise HoldingNotFoundError("Company not found in the list")

    matches = [index for index, holding in enumerate(holdings) if _matches_pair(holding, key)]
    if not matches:
        raise HoldingNotFoundError("Company not found in the list")
    if len(matches) > 1:
        raise ProfileValidationError(
            f"{len(matches)} holdings share companyName '{key.company_name}' and isinNumber "
            f"'{key.isin_number}'; supply holdingId",
            field="holdingId",
        )
    return matches[0]


def set_review(
    profile: ProfileT,
    key: HoldingKey,
    status: ReviewStatus,
    notes: str,
    reviewer: str | None,
    *,
    now: datetime | None = None,
) -> ProfileT:
    """Return a copy of ``profile`` with one holding's review replaced."""

    index = locate_holding(profile.companies, key)
    review = Review(
        status=status,
        notes=notes or "",
        reviewed_at=now or datetime.now(UTC),
        reviewed_by=reviewer,
    )
    holdings = list(profile.companies)
    holdings[index] = holdings[index].model_copy(update={"review": review})
    return profile.model_copy(update={"companies": holdings})


def review_stats(holdings: Iterable[ShareHolding]) -> ReviewStats:
    counts = {status: 0 for status in ReviewStatus}
    total = 0
    for holding in holdings:
        counts[holding.review.status] += 1
        total += 1
    return ReviewStats(
        total=total,
        pending=counts[ReviewStatus.PENDING],
        approved=counts[ReviewStatus.APPROVED],
        rejected=counts[ReviewStatus.REJECTED],
        needs_attention=counts[ReviewStatus.NEEDS_ATTENTION],
    )


def filter_by_review_status(
    holdings: Iterable[ShareHolding], status: ReviewStatus | str
) -> list[ShareHolding]:
    if status == ALL_STATUSES:
        return list(holdings)
    wanted = ReviewStatus(status)
    return [holding for holding in holdings if holding.review.status == wanted]


__all__ = [
    "ALL_STATUSES",
    "filter_by_review_status",
    "locate_holding",
    "review_stats",
    "set_review",
]
