# findme/models/swipe.py
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

SwipeType = Literal["like", "pass"]
CandidateKind = Literal["vacancy", "profile"]


class CompanySummary(BaseModel):
    id: str
    company_name: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    location: Optional[str] = None
    company_size: Optional[str] = None
    culture: Optional[str] = None
    benefits: Optional[List[str]] = None


class VacancyCandidate(BaseModel):
    kind: Literal["vacancy"] = "vacancy"
    id: str
    vacancy: Dict[str, Any]
    company: CompanySummary


class ProfileCandidate(BaseModel):
    kind: Literal["profile"] = "profile"
    id: str
    profile: Dict[str, Any]


Candidate = Annotated[Union[VacancyCandidate, ProfileCandidate], Field(discriminator="kind")]


class CandidateRef(BaseModel):
    kind: CandidateKind
    id: str


class SwipeIn(BaseModel):
    target: CandidateRef
    decision: SwipeType


class SwipeTarget(BaseModel):
    swiped_id: str
    vacancy_id: Optional[str] = None


class SwipeOutcome(BaseModel):
    status: Literal["recorded", "duplicate"]
    match: bool = False
    swiped_id: str
    vacancy_id: Optional[str] = None


class CandidateList(BaseModel):
    user_type: Optional[str] = None
    items: List[Candidate] = Field(default_factory=list)
    match_count: int = 0
