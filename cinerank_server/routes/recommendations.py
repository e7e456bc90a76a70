"""Recommendation endpoint: the whole pipeline under one request timeout."""

import asyncio
import logging
from functools import partial

from fastapi import APIRouter, HTTPException

from cinerank import ConfigurationError
from cinerank.models import RecommendationInsights, RecommendationResult

from ..models import RecommendationCard, RecommendationRequest, RecommendationResponse
from ..state import get_state

logger = logging.getLogger(__name__)

router = APIRouter()


async def _run_in_executor(func, *args, **kwargs):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))


@router.post("/recommendations", response_model=RecommendationResponse)
async def get_recommendations(request: RecommendationRequest):
    """
    Ranked recommendations for one user.

    A pipeline that outlives REQUEST_TIMEOUT_SECONDS yields an empty degraded
    response, not an error. Missing configuration is a 500.
    """
    state = get_state()
    try:
        result = await asyncio.wait_for(
            _run_in_executor(state.service.get_recommendations, request.user_id, request.to_options()),
            timeout=state.config.request_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "[recommendations] TIMEOUT user_id=%s timeout=%s",
            request.user_id, state.config.request_timeout_seconds,
        )
        result = RecommendationResult(
            insights=RecommendationInsights(degraded=True, degradation_reasons=["timeout"])
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return RecommendationResponse(
        user_id=request.user_id,
        items=[RecommendationCard.from_scored(s, i) for i, s in enumerate(result.items)],
        insights=result.insights,
    )
