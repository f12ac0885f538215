# findme/services/swipes.py
"""
Swipe recording and mutual-match detection.

A swipe is written optimistically: there is no existence check before the
insert. The unique index on (swiper_id, swiped_id, vacancy_id, swipe_type)
makes a repeat raise DuplicateKeyError, which is reported as the
idempotent "duplicate" outcome.

Match detection is a read of the reverse "like" only. Nothing here writes
to the matches collection.
"""
import logging

from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError, PyMongoError, WriteError

from findme.core.errors import PersistenceError
from findme.models.actor import Actor
from findme.models.swipe import CandidateRef, SwipeOutcome, SwipeTarget
from findme.repositories import actors as actors_repo
from findme.repositories import swipes as swipes_repo
from findme.repositories import vacancies as vacancies_repo

logger = logging.getLogger(__name__)

# MongoDB "DocumentValidationFailure"
DOCUMENT_VALIDATION_FAILURE = 121


def _is_missing_vacancy_field(exc: WriteError) -> bool:
    return exc.code == DOCUMENT_VALIDATION_FAILURE or "vacancy_id" in str(exc)


async def resolve_target(actor: Actor, ref: CandidateRef) -> SwipeTarget:
    """
    Turn a candidate reference into the counterparty being swiped on.
    Job seekers swipe vacancies (the counterparty is the owning company),
    companies swipe job seeker profiles.
    """
    if ref.kind == "vacancy":
        if not actor.is_job_seeker:
            raise HTTPException(status_code=403, detail="Only job seekers can swipe on vacancies")
        vacancy = await vacancies_repo.get_vacancy(ref.id)
        if not vacancy or not vacancy.get("is_active"):
            raise HTTPException(status_code=404, detail="Vacancy not found")
        return SwipeTarget(swiped_id=vacancy["company_id"], vacancy_id=vacancy["id"])

    if not actor.is_company:
        raise HTTPException(status_code=403, detail="Only companies can swipe on profiles")
    if ref.id == actor.id or not await actors_repo.get_job_seeker(ref.id):
        raise HTTPException(status_code=404, detail="Profile not found")
    return SwipeTarget(swiped_id=ref.id)


async def _insert(actor_id: str, target: SwipeTarget, decision: str, include_vacancy: bool = True) -> str:
    """Insert and map DuplicateKeyError to the "duplicate" status."""
    try:
        await swipes_repo.insert_swipe(
            actor_id, target.swiped_id, decision, target.vacancy_id, include_vacancy=include_vacancy,
        )
    except DuplicateKeyError:
        logger.info("Duplicate swipe %s -> %s (vacancy=%s); treating as recorded", actor_id, target.swiped_id, target.vacancy_id)
        return "duplicate"
    return "recorded"


async def record_swipe(actor_id: str, target: SwipeTarget, decision: str) -> str:
    """
    Persist one swipe. Returns "recorded" or "duplicate".
    Raises PersistenceError for anything else; the caller must not advance.
    """
    try:
        try:
            return await _insert(actor_id, target, decision)
        except WriteError as exc:
            if target.vacancy_id is None or not _is_missing_vacancy_field(exc):
                raise
            logger.warning("Store rejected vacancy_id (%s); retrying without it", exc)
            return await _insert(actor_id, target, decision, include_vacancy=False)
    except PyMongoError as exc:
        logger.exception("Failed to record swipe %s -> %s", actor_id, target.swiped_id)
        raise PersistenceError("Failed to record swipe", cause=exc) from exc


async def detect_match(actor_id: str, target_id: str) -> bool:
    """True when the target has already liked the actor."""
    try:
        return await swipes_repo.find_like(target_id, actor_id) is not None
    except PyMongoError:
        # best-effort notification only; the swipe itself is already stored
        logger.exception("Match check failed for %s <-> %s", actor_id, target_id)
        return False


async def swipe(actor: Actor, ref: CandidateRef, decision: str) -> SwipeOutcome:
    target = await resolve_target(actor, ref)
    status = await record_swipe(actor.id, target, decision)
    match = False
    if decision == "like":
        match = await detect_match(actor.id, target.swiped_id)
        if match:
            logger.info("Mutual like between %s and %s", actor.id, target.swiped_id)
    return SwipeOutcome(status=status, match=match, swiped_id=target.swiped_id, vacancy_id=target.vacancy_id)
