# coshh/api/routes.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from coshh.assessment.extraction import SDSDocument
from coshh.services import CoshhSessionService
from .deps import Caller, Subscription, get_caller, get_session_service, get_subscription
from .schemas import (
    ChatResponse,
    OutputListResponse,
    OutputResponse,
    OutputSummary,
    ResetResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/agents/{agent_id}/chat", response_model=ChatResponse)
def chat(
    agent_id: str,
    message: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    subscription: Subscription = Depends(get_subscription),
    service: CoshhSessionService = Depends(get_session_service),
) -> ChatResponse:
    """
    One turn of the COSHH assessment conversation. Accepts a text message,
    an SDS upload, or both.
    """
    text = (message or "").strip()
    if not text and file is None:
        raise HTTPException(status_code=400, detail="Message or file required")

    document = None
    if file is not None:
        document = SDSDocument(
            content=file.file.read(),
            mime_type=file.content_type or "application/pdf",
            filename=file.filename,
        )

    try:
        result = service.handle_turn(
            user_id=subscription.caller.user_id,
            company_id=subscription.caller.company_id,
            hired_agent_id=subscription.hired_agent_id,
            message=text,
            document=document,
        )
    except Exception:
        logger.exception("Chat turn failed for agent %s", agent_id)
        raise HTTPException(status_code=500, detail="Failed to process message")

    return ChatResponse(
        message=result.message,
        complete=result.complete,
        step=result.step,
        assessment_id=result.assessment_id,
        workflow_data=result.workflow_data,
    )


@router.post("/agents/{agent_id}/chat/reset", response_model=ResetResponse)
def reset_chat(
    agent_id: str,
    subscription: Subscription = Depends(get_subscription),
    service: CoshhSessionService = Depends(get_session_service),
) -> ResetResponse:
    service.reset(subscription.caller.user_id, subscription.hired_agent_id)
    return ResetResponse(message="Assessment reset. Say hello to start a new one.")


@router.get("/agents/{agent_id}/outputs", response_model=OutputListResponse)
def list_outputs(
    agent_id: str,
    subscription: Subscription = Depends(get_subscription),
    service: CoshhSessionService = Depends(get_session_service),
) -> OutputListResponse:
    outputs = service.list_outputs(subscription.caller.company_id, subscription.hired_agent_id)
    return OutputListResponse(
        outputs=[
            OutputSummary(id=o.id, title=o.title, created_by=o.created_by, created_at=o.created_at)
            for o in outputs
        ]
    )


@router.get("/outputs/{output_id}", response_model=OutputResponse)
def get_output(
    output_id: str,
    caller: Caller = Depends(get_caller),
    service: CoshhSessionService = Depends(get_session_service),
) -> OutputResponse:
    output = service.get_output(output_id)
    if output is None or output.company_id != caller.company_id:
        raise HTTPException(status_code=404, detail="Assessment not found.")

    return OutputResponse(
        id=output.id,
        title=output.title,
        created_by=output.created_by,
        created_at=output.created_at,
        hired_agent_id=output.hired_agent_id,
        company_id=output.company_id,
        output_data=output.output_data,
    )
