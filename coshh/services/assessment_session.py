# coshh/services/assessment_session.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from coshh.assessment.agent import CoshhWorkflowAgent
from coshh.assessment.assembly import build_assessment_record, build_workflow_preview
from coshh.assessment.extraction import SDSDocument
from coshh.assessment.state import state_key
from coshh.db import Base, SessionLocal, engine
from coshh.models import AgentOutput, ChatMessage
from coshh.services.locks import KeyedLock
from coshh.services.state_store import WorkflowStateStore

logger = logging.getLogger(__name__)


@contextmanager
def db_session():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """
    Create all tables. Called once at startup.
    """
    Base.metadata.create_all(bind=engine)


@dataclass
class TurnResult:
    message: str
    complete: bool
    step: str
    assessment_id: Optional[str] = None
    workflow_data: Optional[Dict[str, Any]] = None


class CoshhSessionService:
    """
    Service that coordinates one chat turn:
      - loading (or starting) the workflow state for user x hired agent
      - driving the CoshhWorkflowAgent
      - persisting the transcript and, on completion, the assessment
      - writing the new state back, or evicting it once complete

    Turns for the same key are serialised in-process. The transcript, the
    assessment and the state write share one transaction, and the state
    write checks the version that was read, so a stale turn from another
    worker fails as a whole. If anything raises, the stored state is left
    exactly as it was before the turn.
    """

    def __init__(
        self,
        agent: CoshhWorkflowAgent,
        store: WorkflowStateStore,
        locks: Optional[KeyedLock] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self.agent = agent
        self.store = store
        self.locks = locks or KeyedLock()
        self.ttl_seconds = ttl_seconds

    def handle_turn(
        self,
        user_id: str,
        company_id: str,
        hired_agent_id: str,
        message: str = "",
        document: Optional[SDSDocument] = None,
    ) -> TurnResult:
        key = state_key(user_id, hired_agent_id)

        with self.locks.hold(key):
            stored = self.store.get(key)
            if stored is None:
                state, _ = self.agent.start()
                version = 0
            else:
                state, version = stored.state, stored.version

            new_state, reply = self.agent.step(state, message, document)

            assessment_id = None
            with db_session() as session:
                user_text = message
                if not user_text and document is not None:
                    user_text = f"[Uploaded {document.filename or 'document'}]"
                now = datetime.now(timezone.utc)
                session.add(
                    ChatMessage(hired_agent_id=hired_agent_id, user_id=user_id, role="user", text=user_text, ts=now)
                )
                session.add(
                    ChatMessage(hired_agent_id=hired_agent_id, user_id=user_id, role="assistant", text=reply, ts=now)
                )

                if new_state.is_complete:
                    record = build_assessment_record(new_state)
                    output = AgentOutput(
                        hired_agent_id=hired_agent_id,
                        company_id=company_id,
                        created_by=user_id,
                        title=record.title,
                        output_data=record.output_data.model_dump(mode="json"),
                    )
                    session.add(output)
                    session.flush()  # to get output.id
                    assessment_id = output.id
                    # A second worker holding the same state fails here and its output rolls back
                    self.store.delete(key, expected_version=version, session=session)
                else:
                    self.store.put(
                        key, new_state, ttl=self.ttl_seconds, expected_version=version, session=session
                    )

            if new_state.is_complete:
                logger.info("Assessment %s saved for %s; workflow state evicted", assessment_id, key)

        return TurnResult(
            message=reply,
            complete=new_state.is_complete,
            step=new_state.current_step.value,
            assessment_id=assessment_id,
            workflow_data=build_workflow_preview(new_state),
        )

    def reset(self, user_id: str, hired_agent_id: str) -> None:
        key = state_key(user_id, hired_agent_id)
        with self.locks.hold(key):
            self.store.delete(key)
        logger.info("Workflow state %s reset", key)

    def list_outputs(self, company_id: str, hired_agent_id: str) -> List[AgentOutput]:
        with db_session() as session:
            stmt = (
                select(AgentOutput)
                .where(
                    AgentOutput.company_id == company_id,
                    AgentOutput.hired_agent_id == hired_agent_id,
                )
                .order_by(AgentOutput.created_at.desc())
            )
            outputs = list(session.scalars(stmt))
            session.expunge_all()
            return outputs

    def get_output(self, output_id: str) -> Optional[AgentOutput]:
        with db_session() as session:
            output = session.get(AgentOutput, output_id)
            if output is not None:
                session.expunge(output)
            return output
