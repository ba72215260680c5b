# coshh/models.py
from datetime import datetime
import uuid

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    CheckConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from coshh.db import Base, JSONType


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    users: Mapped[list["User"]] = relationship(
        "User", back_populates="company"
    )
    hired_agents: Mapped[list["HiredAgent"]] = relationship(
        "HiredAgent", back_populates="company", cascade="all, delete-orphan"
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=generate_uuid
    )
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    company_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    company: Mapped[Company | None] = relationship(
        "Company", back_populates="users"
    )


class HiredAgent(Base):
    """
    A company's subscription to one agent (e.g. "coshh-generator").
    """
    __tablename__ = "hired_agents"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=generate_uuid
    )
    company_id: Mapped[str] = mapped_column(
        String, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    agent_id: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    hired_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'paused', 'cancelled')",
            name="ck_hired_agents_status_valid",
        ),
    )

    company: Mapped[Company] = relationship(
        "Company", back_populates="hired_agents"
    )
    outputs: Mapped[list["AgentOutput"]] = relationship(
        "AgentOutput", back_populates="hired_agent", cascade="all, delete-orphan"
    )


class AgentOutput(Base):
    """
    A finished, persisted assessment record.
    """
    __tablename__ = "agent_outputs"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=generate_uuid
    )
    hired_agent_id: Mapped[str] = mapped_column(
        String, ForeignKey("hired_agents.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[str] = mapped_column(
        String, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    created_by: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    output_data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    hired_agent: Mapped[HiredAgent] = relationship(
        "HiredAgent", back_populates="outputs"
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hired_agent_id: Mapped[str] = mapped_column(
        String, ForeignKey("hired_agents.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    ts: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'assistant')",
            name="ck_chat_messages_role_valid",
        ),
    )


class WorkflowSession(Base):
    """
    Durable copy of an in-progress workflow, keyed by "{user_id}-{hired_agent_id}".
    """
    __tablename__ = "workflow_sessions"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
