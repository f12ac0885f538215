# findme/api/v1/vacancies.py
from fastapi import APIRouter, Depends, HTTPException

from findme.api.v1.auth import get_current_actor
from findme.models.actor import Actor
from findme.models.vacancy import Vacancy, VacancyIn, VacancyUpdate
from findme.repositories import vacancies as vacancies_repo

router = APIRouter()


async def get_current_company(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_company:
        raise HTTPException(status_code=403, detail="Only companies can manage vacancies")
    return actor


@router.get("/vacancies")
async def list_vacancies(company: Actor = Depends(get_current_company)):
    rows = await vacancies_repo.list_company_vacancies(company.id)
    return {
        "items": rows,
        "count": len(rows),
        "active_count": sum(1 for r in rows if r.get("is_active")),
    }


@router.post("/vacancies", status_code=201, response_model=Vacancy)
async def create_vacancy(payload: VacancyIn, company: Actor = Depends(get_current_company)):
    return await vacancies_repo.create_vacancy(company.id, payload.model_dump())


@router.get("/vacancies/{vacancy_id}", response_model=Vacancy)
async def get_vacancy(vacancy_id: str, company: Actor = Depends(get_current_company)):
    doc = await vacancies_repo.get_owned_vacancy(vacancy_id, company.id)
    if not doc:
        raise HTTPException(status_code=404, detail="Vacancy not found")
    return doc


@router.put("/vacancies/{vacancy_id}", response_model=Vacancy)
async def update_vacancy(vacancy_id: str, payload: VacancyUpdate, company: Actor = Depends(get_current_company)):
    changes = payload.model_dump(exclude_unset=True)
    doc = await vacancies_repo.update_vacancy(vacancy_id, company.id, changes)
    if not doc:
        raise HTTPException(status_code=404, detail="Vacancy not found")
    return doc


@router.post("/vacancies/{vacancy_id}/toggle", response_model=Vacancy)
async def toggle_vacancy(vacancy_id: str, company: Actor = Depends(get_current_company)):
    current = await vacancies_repo.get_owned_vacancy(vacancy_id, company.id)
    if not current:
        raise HTTPException(status_code=404, detail="Vacancy not found")
    return await vacancies_repo.update_vacancy(vacancy_id, company.id, {"is_active": not current.get("is_active")})


@router.delete("/vacancies/{vacancy_id}")
async def delete_vacancy(vacancy_id: str, company: Actor = Depends(get_current_company)):
    ok = await vacancies_repo.delete_vacancy(vacancy_id, company.id)
    if not ok:
        raise HTTPException(status_code=404, detail="Not found or already deleted")
    return {"deleted": True}
