"""User behavior profile endpoint."""

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool

from cinerank import BehaviorProfile, ConfigurationError

from ..state import get_state

router = APIRouter()


@router.get("/{user_id}/profile", response_model=BehaviorProfile)
async def get_profile(user_id: str):
    """Behavior profile; a user with no history gets the empty profile."""
    state = get_state()
    try:
        return await run_in_threadpool(state.service.get_behavior_profile, user_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
