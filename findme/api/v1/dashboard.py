# findme/api/v1/dashboard.py
from fastapi import APIRouter, Depends

from findme.api.v1.auth import get_current_actor
from findme.models.actor import Actor
from findme.models.match import MatchItem
from findme.repositories import actors as actors_repo
from findme.repositories import matches as matches_repo

router = APIRouter()


@router.get("/dashboard/matches")
async def dashboard_matches(actor: Actor = Depends(get_current_actor)):
    if not actor.type:
        return {"user_type": None, "items": [], "count": 0}
    rows = await matches_repo.list_active_matches(actor.id, actor.type)
    items = []
    if actor.is_job_seeker:
        companies = await actors_repo.companies_by_ids(r["company_id"] for r in rows)
        for r in rows:
            items.append(MatchItem(**r, company=companies.get(r["company_id"])))
    else:
        seekers = await actors_repo.job_seekers_by_ids(r["job_seeker_id"] for r in rows)
        for r in rows:
            items.append(MatchItem(**r, job_seeker=seekers.get(r["job_seeker_id"])))
    return {"user_type": actor.type, "items": items, "count": len(items)}


@router.get("/matches/count")
async def match_count(actor: Actor = Depends(get_current_actor)):
    return {"count": await matches_repo.count_active_matches(actor.id)}
