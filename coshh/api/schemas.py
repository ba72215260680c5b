# coshh/api/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ChatResponse(BaseModel):
    message: str
    complete: bool
    step: str
    assessment_id: Optional[str] = None
    workflow_data: Optional[Dict[str, Any]] = None


class ResetResponse(BaseModel):
    message: str


class OutputSummary(BaseModel):
    id: str
    title: str
    created_by: str
    created_at: datetime


class OutputListResponse(BaseModel):
    outputs: List[OutputSummary]


class OutputResponse(OutputSummary):
    hired_agent_id: str
    company_id: str
    output_data: Dict[str, Any]
