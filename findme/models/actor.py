# findme/models/actor.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, HttpUrl

UserType = Literal["job_seeker", "company"]
SubscriptionStatus = Literal["active", "inactive", "trial"]


class JobSeekerProfileIn(BaseModel):
    name: str = Field(..., min_length=2)
    bio: Optional[str] = Field(None, max_length=500)
    experience: Optional[str] = None
    education: Optional[str] = None
    address: str = Field(..., min_length=1)
    skills: List[str] = Field(..., min_length=1)
    preferences: List[str] = Field(default_factory=list)
    personality: Optional[str] = None
    profile_image_url: Optional[str] = None


class CompanyProfileIn(BaseModel):
    company_name: str = Field(..., min_length=2)
    description: Optional[str] = Field(None, max_length=1000)
    culture: Optional[str] = Field(None, max_length=500)
    location: str = Field(..., min_length=1)
    # a URL, or empty when the company has no site
    website: Optional[Union[HttpUrl, Literal[""]]] = None
    company_size: Optional[str] = None
    industry: Optional[str] = None
    benefits: List[str] = Field(default_factory=list)
    logo_url: Optional[str] = None


class JobSeeker(BaseModel):
    id: str
    name: str
    email: str
    address: Optional[str] = None
    preferences: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    personality: Optional[str] = None
    bio: Optional[str] = None
    experience: Optional[str] = None
    education: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Company(BaseModel):
    id: str
    company_name: str
    email: str
    description: Optional[str] = None
    culture: Optional[str] = None
    benefits: Optional[List[str]] = None
    location: Optional[str] = None
    website: Optional[str] = None
    company_size: Optional[str] = None
    industry: Optional[str] = None
    logo_url: Optional[str] = None
    subscription_status: SubscriptionStatus = "trial"
    subscription_end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Actor(BaseModel):
    """The authenticated account plus the actor record it owns (if any)."""
    id: str
    email: Optional[str] = None
    type: Optional[UserType] = None
    profile: Optional[Dict[str, Any]] = None

    @property
    def is_company(self) -> bool:
        return self.type == "company"

    @property
    def is_job_seeker(self) -> bool:
        return self.type == "job_seeker"
