"""Database table definitions for SOPs, tags, and their associations"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


DEFAULT_TAG_COLOR = "#6b7280"


class SOPTag(SQLModel, table=True):
    """Many-to-many relationship between SOPs and tags"""
    __tablename__ = "sop_tags"
    sop_id: UUID = Field(foreign_key="sops.id", primary_key=True)
    tag_id: UUID = Field(foreign_key="tags.id", primary_key=True)
    position: int = Field(default=0, nullable=False, description="Position of the tag within the SOP's tag list")


class SOP(SQLModel, table=True):
    """A stored standard operating procedure; steps live in `content` as ordered JSON"""
    __tablename__ = "sops"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(..., index=True, nullable=False)
    objectives: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    logins_prerequisites: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    content: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_by: Optional[str] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    is_archived: bool = Field(default=False, nullable=False)


class Tag(SQLModel, table=True):
    """A named, coloured label used to group SOPs"""
    __tablename__ = "tags"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(..., sa_column=Column(String(64), nullable=False, unique=True))
    color: str = Field(default=DEFAULT_TAG_COLOR, nullable=False)
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
