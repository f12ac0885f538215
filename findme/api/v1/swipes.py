# findme/api/v1/swipes.py
from fastapi import APIRouter, Depends

from findme.api.v1.auth import get_current_actor
from findme.models.actor import Actor
from findme.models.swipe import CandidateList, SwipeIn, SwipeOutcome
from findme.services.candidates import count_matches, load_candidates
from findme.services.swipes import swipe

router = APIRouter()


@router.get("/swipe/candidates", response_model=CandidateList)
async def get_candidates(actor: Actor = Depends(get_current_actor)):
    items = await load_candidates(actor)
    return CandidateList(user_type=actor.type, items=items, match_count=await count_matches(actor))


@router.post("/swipes", response_model=SwipeOutcome)
async def post_swipe(payload: SwipeIn, actor: Actor = Depends(get_current_actor)):
    """
    Record a like/pass on a candidate. A repeat of an earlier decision comes
    back as status "duplicate" rather than an error.
    """
    return await swipe(actor, payload.target, payload.decision)
