from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, Response, status

from src.api.dependencies import CurrentPrincipal, Repository, authorize
from src.config import get_settings
from src.db.base import SchoolQuery
from src.db.models import Review, School
from src.schemas.school import (
    NearbySchoolResponse,
    ReviewResponse,
    ReviewSubmitRequest,
    ReviewWithAuthorResponse,
    SchoolCreateRequest,
    SchoolDetailResponse,
    SchoolResponse,
    SchoolSummaryResponse,
    SchoolUpdateRequest,
)
from src.services.authorization import Action, ResourceRef
from src.services.completeness import profile_completeness
from src.services.nearby import nearest, validate_origin
from src.services.ratings import check_scores, review_average, round_rating
from src.services.statistics import summarize_school

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schools"])


@router.get("/api/schools", response_model=list[SchoolSummaryResponse])
async def list_schools(
    repo: Repository,
    search: str | None = None,
    kecamatan: str | None = None,
    bentuk: str | None = None,
    limit: Annotated[int | None, Query(ge=1)] = None,
    offset: Annotated[int | None, Query(ge=0)] = None,
) -> list[SchoolSummaryResponse]:
    """List schools, each with its average rating and review count."""
    decimals = get_settings().SCHOOL_RATING_DECIMALS
    schools = await repo.find_schools(
        SchoolQuery(search=search, kecamatan=kecamatan, bentuk=bentuk, limit=limit, offset=offset)
    )
    return [
        SchoolSummaryResponse(
            **SchoolResponse.model_validate(school).model_dump(),
            **summarize_school(school.reviews, decimals),
        )
        for school in schools
    ]


@router.get("/api/schools/nearby", response_model=list[NearbySchoolResponse])
async def nearby_schools(
    repo: Repository,
    lat: float,
    lng: float,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> list[NearbySchoolResponse]:
    """Closest geocoded schools to a point, nearest first."""
    origin = validate_origin(lat, lng)
    candidates = await repo.find_schools_with_coordinates()
    ranked = nearest(origin, candidates, limit or get_settings().NEARBY_DEFAULT_LIMIT)
    return [
        NearbySchoolResponse(
            id=r.school.id,
            name=r.school.name,
            alamat=r.school.alamat,
            lat=r.school.lat,
            lng=r.school.lng,
            distance=r.distance_km,
        )
        for r in ranked
    ]


@router.get("/api/schools/{school_id}", response_model=SchoolDetailResponse)
async def get_school(school_id: int, repo: Repository) -> SchoolDetailResponse:
    """Full profile of a school with its reviews, newest first."""
    school = await repo.find_school_by_id(school_id)
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")

    reviews = await repo.find_reviews_by_school(school_id)
    decimals = get_settings().SCHOOL_RATING_DECIMALS
    return SchoolDetailResponse(
        **SchoolResponse.model_validate(school).model_dump(),
        **summarize_school(reviews, decimals),
        profile_completeness=profile_completeness(school),
        reviews=[
            ReviewWithAuthorResponse(
                **ReviewResponse.model_validate(r).model_dump(exclude={"average"}),
                average=round_rating(review_average(r), decimals),
                user_name=r.user.name if r.user is not None else None,
            )
            for r in reviews
        ],
    )


@router.post("/api/schools", response_model=SchoolResponse, status_code=status.HTTP_201_CREATED)
async def create_school(
    request: SchoolCreateRequest, principal: CurrentPrincipal, repo: Repository
) -> SchoolResponse:
    authorize(principal, Action.CREATE_SCHOOL, ResourceRef.school())
    school = await repo.create_school(School(**request.model_dump()))
    logger.info("School %d created by %s", school.id, principal.id)
    return SchoolResponse.model_validate(school)


@router.put("/api/schools/{school_id}", response_model=SchoolResponse)
async def update_school(
    school_id: int, request: SchoolUpdateRequest, principal: CurrentPrincipal, repo: Repository
) -> SchoolResponse:
    """Update profile fields of a school.  School admins may only edit their own school."""
    authorize(principal, Action.UPDATE_SCHOOL, ResourceRef.school(school_id))

    changes = request.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        del changes["name"]

    school = await repo.update_school(school_id, changes)
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")
    logger.info("School %d updated by %s (%s)", school_id, principal.id, ", ".join(sorted(changes)))
    return SchoolResponse.model_validate(school)


@router.delete("/api/schools/{school_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_school(school_id: int, principal: CurrentPrincipal, repo: Repository) -> Response:
    authorize(principal, Action.DELETE_SCHOOL, ResourceRef.school(school_id))
    if not await repo.delete_school(school_id):
        raise HTTPException(status_code=404, detail="School not found")
    logger.info("School %d deleted by %s", school_id, principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/api/schools/{school_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED
)
async def submit_review(
    school_id: int, request: ReviewSubmitRequest, principal: CurrentPrincipal, repo: Repository
) -> ReviewResponse:
    """Submit a four-criterion review of a school."""
    authorize(principal, Action.CREATE_REVIEW, ResourceRef.review(school_id=school_id))

    school = await repo.find_school_by_id(school_id)
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")

    check_scores(request)

    review = await repo.create_review(
        Review(
            school_id=school_id,
            user_id=principal.id,
            kenyamanan=request.kenyamanan,
            pembelajaran=request.pembelajaran,
            fasilitas=request.fasilitas,
            kepemimpinan=request.kepemimpinan,
            komentar=request.komentar,
        )
    )
    return ReviewResponse(
        **ReviewResponse.model_validate(review).model_dump(exclude={"average"}),
        average=round_rating(review_average(review), get_settings().SCHOOL_RATING_DECIMALS),
    )
