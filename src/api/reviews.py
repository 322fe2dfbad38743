from __future__ import annotations

import logging
from types import SimpleNamespace

from fastapi import APIRouter, HTTPException, Response, status

from src.api.dependencies import CurrentPrincipal, Repository, authorize
from src.config import get_settings
from src.db.models import Review
from src.schemas.school import ReviewResponse, ReviewUpdateRequest
from src.services.authorization import Action, ResourceRef
from src.services.ratings import CRITERIA, check_scores, review_average, round_rating

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reviews"])


def _to_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        **ReviewResponse.model_validate(review).model_dump(exclude={"average"}),
        average=round_rating(review_average(review), get_settings().SCHOOL_RATING_DECIMALS),
    )


async def _load(review_id: int, repo: Repository) -> Review:
    review = await repo.find_review_by_id(review_id)
    if review is None:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


def _ref(review: Review) -> ResourceRef:
    return ResourceRef.review(review.id, school_id=review.school_id, author_id=review.user_id)


@router.get("/api/reviews/{review_id}", response_model=ReviewResponse)
async def get_review(review_id: int, principal: CurrentPrincipal, repo: Repository) -> ReviewResponse:
    review = await _load(review_id, repo)
    authorize(principal, Action.READ_REVIEW, _ref(review))
    return _to_response(review)


@router.put("/api/reviews/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: int, request: ReviewUpdateRequest, principal: CurrentPrincipal, repo: Repository
) -> ReviewResponse:
    """Edit a review.  Only its author (or a superadmin) may do this."""
    review = await _load(review_id, repo)
    authorize(principal, Action.UPDATE_REVIEW, _ref(review))

    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None or k == "komentar"}
    merged = SimpleNamespace(**{name: changes.get(name, getattr(review, name)) for name in CRITERIA})
    check_scores(merged)

    updated = await repo.update_review(review_id, changes)
    if updated is None:
        raise HTTPException(status_code=404, detail="Review not found")
    return _to_response(updated)


@router.delete("/api/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(review_id: int, principal: CurrentPrincipal, repo: Repository) -> Response:
    review = await _load(review_id, repo)
    authorize(principal, Action.DELETE_REVIEW, _ref(review))
    await repo.delete_review(review_id)
    logger.info("Review %d deleted by %s", review_id, principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
