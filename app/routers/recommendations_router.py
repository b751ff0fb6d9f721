from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
import logging

from ..application.policies import Caller, Role
from ..application.services.recommendations_service import (
    RecommendationFilters,
    RecommendationPatch,
    RecommendationsService,
)
from ..schemas.recommendations.recommendation import (
    PublicRecommendationResponse,
    RecommendationCreate,
    RecommendationResponse,
    RecommendationStatsResponse,
    RecommendationUpdate,
)
from .deps import get_current_caller, get_recommendations_service, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["Recommendations"])


@router.post("", response_model=RecommendationResponse, status_code=status.HTTP_201_CREATED)
def create_recommendation(
    data: RecommendationCreate,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    recommendations: RecommendationsService = Depends(get_recommendations_service),
):
    rec = recommendations.create(
        caller,
        doctor_id=data.doctor_id,
        reason=data.reason,
        badge=data.badge,
        valid_from=data.valid_from,
        valid_to=data.valid_to,
    )
    return RecommendationResponse.model_validate(rec)


@router.get("/my", response_model=List[RecommendationResponse])
def my_recommendations(
    caller: Caller = Depends(require_role(Role.DOCTOR)),
    recommendations: RecommendationsService = Depends(get_recommendations_service),
):
    return [RecommendationResponse.model_validate(r) for r in recommendations.list_for_doctor(caller)]


@router.get("/doctor/{doctor_id}", response_model=List[RecommendationResponse])
def doctor_recommendations(
    doctor_id: str,
    caller: Caller = Depends(get_current_caller),
    recommendations: RecommendationsService = Depends(get_recommendations_service),
):
    return [RecommendationResponse.model_validate(r) for r in recommendations.list_for_doctor(caller, doctor_id)]


# admin and public routes are declared before "/{recommendation_id}"
@router.get("/admin/stats", response_model=RecommendationStatsResponse)
def recommendation_stats(
    caller: Caller = Depends(require_role(Role.ADMIN)),
    recommendations: RecommendationsService = Depends(get_recommendations_service),
):
    return RecommendationStatsResponse.model_validate(recommendations.stats(caller))


@router.get("/admin", response_model=List[RecommendationResponse])
def list_all_recommendations(
    badge: Optional[str] = Query(None),
    doctor_id: Optional[str] = Query(None),
    is_expired: Optional[bool] = Query(None),
    valid_from: Optional[datetime] = Query(None, description="Earliest valid_from"),
    valid_to: Optional[datetime] = Query(None, description="Latest valid_from"),
    caller: Caller = Depends(require_role(Role.ADMIN)),
    recommendations: RecommendationsService = Depends(get_recommendations_service),
):
    rows = recommendations.list_all(
        caller,
        RecommendationFilters(badge=badge, doctor_id=doctor_id, is_expired=is_expired,
                              valid_from=valid_from, valid_to=valid_to),
    )
    return [RecommendationResponse.model_validate(r) for r in rows]


@router.get("/public", response_model=List[PublicRecommendationResponse])
def public_recommendations(
    recommendations: RecommendationsService = Depends(get_recommendations_service),
):
    return [PublicRecommendationResponse.model_validate(p) for p in recommendations.public()]


@router.get("/{recommendation_id}", response_model=RecommendationResponse)
def get_recommendation(
    recommendation_id: str,
    caller: Caller = Depends(get_current_caller),
    recommendations: RecommendationsService = Depends(get_recommendations_service),
):
    return RecommendationResponse.model_validate(recommendations.get(caller, recommendation_id))


@router.put("/{recommendation_id}", response_model=RecommendationResponse)
def update_recommendation(
    recommendation_id: str,
    patch: RecommendationUpdate,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    recommendations: RecommendationsService = Depends(get_recommendations_service),
):
    rec = recommendations.update(
        caller,
        recommendation_id,
        RecommendationPatch(reason=patch.reason, badge=patch.badge, valid_to=patch.valid_to, is_expired=patch.is_expired),
    )
    return RecommendationResponse.model_validate(rec)
