# findme/api/v1/profiles.py
from fastapi import APIRouter, Depends, HTTPException

from findme.api.v1.auth import get_current_actor
from findme.models.actor import Actor, Company, CompanyProfileIn, JobSeeker, JobSeekerProfileIn
from findme.repositories import actors as actors_repo

router = APIRouter()


def _shape(user_type, profile):
    if profile is None:
        return None
    return JobSeeker(**profile) if user_type == "job_seeker" else Company(**profile)


@router.get("/profile")
async def get_profile(actor: Actor = Depends(get_current_actor)):
    # user_type None means the account has no actor record yet
    return {"user_type": actor.type, "profile": _shape(actor.type, actor.profile)}


@router.put("/profile/job-seeker")
async def save_job_seeker_profile(payload: JobSeekerProfileIn, actor: Actor = Depends(get_current_actor)):
    if actor.is_company:
        raise HTTPException(status_code=403, detail="Company accounts cannot edit a job seeker profile")
    doc = await actors_repo.upsert_job_seeker(actor.id, actor.email, payload.model_dump())
    return {"user_type": "job_seeker", "profile": JobSeeker(**doc)}


@router.put("/profile/company")
async def save_company_profile(payload: CompanyProfileIn, actor: Actor = Depends(get_current_actor)):
    if actor.is_job_seeker:
        raise HTTPException(status_code=403, detail="Job seeker accounts cannot edit a company profile")
    data = payload.model_dump(mode="json")
    doc = await actors_repo.upsert_company(actor.id, actor.email, data)
    return {"user_type": "company", "profile": Company(**doc)}
