"""SOP persistence: lookup, filtering, create/update/delete, archiving, and tag associations"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Union
from uuid import UUID

from sqlalchemy import func, or_
from sqlmodel import Session, select

from sophub.core.models import ExportableSOP, ParsedSOP, Step
from sophub.core.steps import renumber
from sophub.crud.models import SOP, SOPTag, Tag
from sophub.errors import NotFoundError, ValidationError


logger = logging.getLogger(__name__)

SOPId = Union[UUID, str]


def _as_uuid(sop_id: SOPId) -> Optional[UUID]:
    """Return sop_id as a UUID, or None if it is not a valid UUID string."""
    if isinstance(sop_id, UUID):
        return sop_id
    try:
        return UUID(str(sop_id))
    except ValueError:
        return None


def _dump_steps(steps: list[Step]) -> list[dict]:
    return [s.model_dump(mode="json") for s in renumber(steps)]


def _require_title(parsed: ParsedSOP) -> str:
    title = parsed.title.strip()
    if not title:
        raise ValidationError("Title is required")
    return title


# --- lookup ---

def get_sop(session: Session, sop_id: SOPId) -> Optional[SOP]:
    """Return the SOP with the given id, or None if not found."""
    uid = _as_uuid(sop_id)
    return session.get(SOP, uid) if uid else None


def _require_sop(session: Session, sop_id: SOPId) -> SOP:
    sop = get_sop(session, sop_id)
    if sop is None:
        raise NotFoundError(f"SOP {sop_id} not found")
    return sop


def list_sops(
    session: Session,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    include_archived: bool = False,
    ) -> list[SOP]:
    """Return SOPs newest first.

    search matches title or objectives case-insensitively; tag restricts to SOPs
    associated with a tag of that name. Archived SOPs are skipped unless asked for.
    """
    stmt = select(SOP)
    if not include_archived:
        stmt = stmt.where(SOP.is_archived == False)  # noqa: E712
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(or_(
            func.lower(SOP.title).like(pattern),
            func.lower(SOP.objectives).like(pattern),
        ))
    if tag:
        stmt = (
            stmt.join(SOPTag, SOPTag.sop_id == SOP.id)
            .join(Tag, Tag.id == SOPTag.tag_id)
            .where(Tag.name == tag)
        )
    stmt = stmt.order_by(SOP.created_at.desc(), SOP.title)
    return list(session.exec(stmt).all())


# --- tags ---

def get_tag_by_name(session: Session, name: str) -> Optional[Tag]:
    return session.exec(select(Tag).where(Tag.name == name)).first()


def tag_names(session: Session, sop: SOP) -> list[str]:
    """Return the names of tags associated with sop, in association order."""
    stmt = (
        select(Tag.name)
        .join(SOPTag, SOPTag.tag_id == Tag.id)
        .where(SOPTag.sop_id == sop.id)
        .order_by(SOPTag.position)
    )
    return list(session.exec(stmt).all())


def set_tags(session: Session, sop: SOP, names: Iterable[str]) -> list[Tag]:
    """Replace sop's tag associations with names, creating tags that do not exist yet.

    Duplicate and blank names are dropped; first occurrence wins the position.
    """
    for link in session.exec(select(SOPTag).where(SOPTag.sop_id == sop.id)).all():
        session.delete(link)
    session.flush()

    tags = []
    unique = dict.fromkeys(n.strip() for n in names if n and n.strip())
    for position, name in enumerate(unique):
        tag = get_tag_by_name(session, name)
        if tag is None:
            tag = Tag(name=name)
            session.add(tag)
            session.flush()
            logger.debug("Created tag %r", name)
        session.add(SOPTag(sop_id=sop.id, tag_id=tag.id, position=position))
        tags.append(tag)
    session.flush()
    return tags


# --- create / update / delete ---

def create_sop(
    session: Session,
    parsed: ParsedSOP,
    created_by: Optional[str] = None,
    tags: Iterable[str] = (),
    ) -> SOP:
    """Insert a new SOP from a parse result.

    Flushes but does not commit; caller controls the transaction.
    Raises ValidationError if the title is blank.
    """
    sop = SOP(
        title=_require_title(parsed),
        objectives=parsed.objectives.strip() or None,
        logins_prerequisites=parsed.logins_prerequisites.strip() or None,
        content=_dump_steps(parsed.steps),
        created_by=created_by,
    )
    session.add(sop)
    session.flush()
    set_tags(session, sop, tags)
    logger.info("Created SOP %s (%r, %d steps)", sop.id, sop.title, len(sop.content))
    return sop


def update_sop(
    session: Session,
    sop_id: SOPId,
    parsed: ParsedSOP,
    tags: Optional[Iterable[str]] = None,
    ) -> SOP:
    """Overwrite an SOP's title, free text, and steps. tags=None keeps existing tags.

    Raises NotFoundError for an unknown id and ValidationError for a blank title.
    """
    sop = _require_sop(session, sop_id)
    sop.title = _require_title(parsed)
    sop.objectives = parsed.objectives.strip() or None
    sop.logins_prerequisites = parsed.logins_prerequisites.strip() or None
    sop.content = _dump_steps(parsed.steps)
    sop.updated_at = datetime.now()
    session.add(sop)
    session.flush()
    if tags is not None:
        set_tags(session, sop, tags)
    logger.info("Updated SOP %s (%r, %d steps)", sop.id, sop.title, len(sop.content))
    return sop


def archive_sop(session: Session, sop_id: SOPId, archived: bool = True) -> SOP:
    sop = _require_sop(session, sop_id)
    sop.is_archived = archived
    sop.updated_at = datetime.now()
    session.add(sop)
    session.flush()
    return sop


def delete_sop(session: Session, sop_id: SOPId) -> None:
    """Delete an SOP and its tag associations. Raises NotFoundError for an unknown id."""
    sop = _require_sop(session, sop_id)
    for link in session.exec(select(SOPTag).where(SOPTag.sop_id == sop.id)).all():
        session.delete(link)
    session.delete(sop)
    session.flush()
    logger.info("Deleted SOP %s", sop_id)


# --- record -> core model ---

def to_parsed(sop: SOP) -> ParsedSOP:
    """Rebuild the editable in-memory model from a stored record."""
    return ParsedSOP(
        title=sop.title,
        objectives=sop.objectives or "",
        logins_prerequisites=sop.logins_prerequisites or "",
        steps=renumber([Step.model_validate(s) for s in sop.content or []]),
    )


def to_exportable(session: Session, sop: SOP) -> ExportableSOP:
    """Stored record plus its tag names, ready for sop_to_yaml."""
    parsed = to_parsed(sop)
    return ExportableSOP(
        title=parsed.title,
        objectives=parsed.objectives,
        logins_prerequisites=parsed.logins_prerequisites,
        steps=parsed.steps,
        tags=tag_names(session, sop),
    )
