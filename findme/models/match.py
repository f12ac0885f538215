# findme/models/match.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class MatchItem(BaseModel):
    id: str
    job_seeker_id: str
    company_id: str
    vacancy_id: Optional[str] = None
    is_active: bool = True
    matched_at: Optional[datetime] = None
    # the other side of the match, shaped for the dashboard
    job_seeker: Optional[Dict[str, Any]] = None
    company: Optional[Dict[str, Any]] = None
