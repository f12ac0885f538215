# findme/models/vacancy.py
from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

EmploymentType = Literal["full-time", "part-time", "contract", "freelance", "internship"]
ExperienceLevel = Literal["entry", "junior", "mid", "senior", "executive"]


def split_csv(value: Union[str, List[str], None]) -> List[str]:
    """Accept either a list or the comma separated text a form sends."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [s.strip() for s in value if s and s.strip()]


class VacancyIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    salary_range: Optional[str] = None
    employment_type: EmploymentType = "full-time"
    experience_level: ExperienceLevel = "mid"
    location: Optional[str] = None
    remote_work: bool = False
    skills_required: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    department: Optional[str] = None

    @field_validator("skills_required", "benefits", mode="before")
    @classmethod
    def _split(cls, v):
        return split_csv(v)


class VacancyUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    salary_range: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    experience_level: Optional[ExperienceLevel] = None
    location: Optional[str] = None
    remote_work: Optional[bool] = None
    skills_required: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    department: Optional[str] = None

    @field_validator("skills_required", "benefits", mode="before")
    @classmethod
    def _split(cls, v):
        if v is None:
            return None
        return split_csv(v)


class Vacancy(BaseModel):
    id: str
    company_id: str
    title: str
    description: Optional[str] = None
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    salary_range: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    experience_level: Optional[ExperienceLevel] = None
    location: Optional[str] = None
    remote_work: bool = False
    skills_required: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    department: Optional[str] = None
    is_active: bool = True
    applications_count: int = 0
    views_count: int = 0
    posted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
