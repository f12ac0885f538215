# findme/services/candidates.py
import logging
from typing import List, Union

from findme.core.config import settings
from findme.models.actor import Actor
from findme.models.swipe import CompanySummary, ProfileCandidate, VacancyCandidate
from findme.repositories import actors as actors_repo
from findme.repositories import matches as matches_repo
from findme.repositories import swipes as swipes_repo
from findme.repositories import vacancies as vacancies_repo

logger = logging.getLogger(__name__)


async def load_candidates(actor: Actor) -> List[Union[VacancyCandidate, ProfileCandidate]]:
    """
    Build the swipe deck for an actor.

    Companies get job seekers, job seekers get active vacancies with their
    company attached. Only earlier likes remove a candidate; passed
    candidates come back on the next load. An actor without a profile gets
    an empty deck.
    """
    limit = settings.CANDIDATE_LIMIT
    if actor.is_company:
        liked = await swipes_repo.liked_target_ids(actor.id)
        seekers = await actors_repo.list_job_seekers(liked | {actor.id}, limit)
        items = [ProfileCandidate(id=s["id"], profile=s) for s in seekers]
    elif actor.is_job_seeker:
        liked = await swipes_repo.liked_vacancy_ids(actor.id)
        vacancies = await vacancies_repo.list_active_vacancies(liked, limit)
        companies = await actors_repo.companies_by_ids(v["company_id"] for v in vacancies)
        items = []
        for v in vacancies:
            company = companies.get(v["company_id"])
            if not company:
                # orphaned posting; there is nobody to match with
                logger.warning("Vacancy %s has no company %s", v["id"], v["company_id"])
                continue
            items.append(VacancyCandidate(id=v["id"], vacancy=v, company=CompanySummary(**company)))
    else:
        return []

    if not items:
        logger.info("No candidates left for %s %s", actor.type, actor.id)
    return items


async def count_matches(actor: Actor) -> int:
    return await matches_repo.count_active_matches(actor.id)
