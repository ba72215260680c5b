# coshh/api/deps.py
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy import select

from coshh.assessment.agent import CoshhWorkflowAgent
from coshh.assessment.extraction import LLMSDSExtractor
from coshh.assessment.likelihood import LLMLikelihoodEstimator
from coshh.config import get_settings
from coshh.llm import OpenAILLMClient
from coshh.models import HiredAgent, User
from coshh.services import CoshhSessionService, db_session, get_state_store


@dataclass(frozen=True)
class Caller:
    user_id: str
    company_id: str


@dataclass(frozen=True)
class Subscription:
    caller: Caller
    hired_agent_id: str


def get_caller(x_user_id: Optional[str] = Header(None)) -> Caller:
    """
    Identity comes from the X-User-Id header set by the auth layer in front
    of this service.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    with db_session() as session:
        user = session.get(User, x_user_id)
        if user is None or not user.company_id:
            raise HTTPException(status_code=404, detail="User or company not found")
        return Caller(user_id=user.id, company_id=user.company_id)


def get_subscription(agent_id: str, caller: Caller = Depends(get_caller)) -> Subscription:
    with db_session() as session:
        stmt = select(HiredAgent).where(
            HiredAgent.company_id == caller.company_id,
            HiredAgent.agent_id == agent_id,
            HiredAgent.status == "active",
        )
        hired = session.scalars(stmt).first()
        if hired is None:
            raise HTTPException(status_code=403, detail="Agent not hired")
        return Subscription(caller=caller, hired_agent_id=hired.id)


@lru_cache(maxsize=1)
def get_session_service() -> CoshhSessionService:
    llm_client = OpenAILLMClient()
    agent = CoshhWorkflowAgent(
        extractor=LLMSDSExtractor(llm_client),
        estimator=LLMLikelihoodEstimator(llm_client),
    )
    return CoshhSessionService(
        agent=agent,
        store=get_state_store(),
        ttl_seconds=get_settings().workflow_state_ttl_seconds,
    )
