"""Unit tests for crud/sops.py"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from sqlmodel import select

from sophub.core.models import ParsedSOP, Step, StepType
from sophub.crud.models import DEFAULT_TAG_COLOR, SOP, SOPTag, Tag
from sophub.crud.sops import (
    archive_sop, create_sop, delete_sop, get_sop, get_tag_by_name, list_sops,
    set_tags, tag_names, to_exportable, to_parsed, update_sop,
)
from sophub.errors import NotFoundError, ValidationError


# --- helpers ---

def _add(session, title, objectives=None, created_at=None, archived=False):
    s = SOP(
        title=title,
        objectives=objectives,
        content=[],
        created_at=created_at or datetime.now(),
        is_archived=archived,
    )
    session.add(s)
    session.flush()
    return s


# --- get_sop ---

def test_get_sop_found(session, sop):
    assert get_sop(session, sop.id) is sop
    assert get_sop(session, str(sop.id)) is sop


@pytest.mark.parametrize("bad_id", ["not-a-uuid", "", str(uuid4())])
def test_get_sop_missing(session, bad_id):
    """Malformed and unknown ids both return None."""
    assert get_sop(session, bad_id) is None


# --- create_sop ---

def test_create_sop_stores_fields(session, parsed):
    sop = create_sop(session, parsed, created_by="alice")
    assert sop.title == "Reset a Password"
    assert sop.objectives == "User can log in again."
    assert sop.logins_prerequisites == "Admin console access"
    assert sop.created_by == "alice"
    assert sop.is_archived is False
    assert [s["title"] for s in sop.content] == ["Find user", "Locked out?"]
    assert sop.content[1]["type"] == "decision"


def test_create_sop_renumbers_steps(session):
    parsed = ParsedSOP(title="T", steps=[Step(title="a", order=7), Step(title="b", order=7)])
    sop = create_sop(session, parsed)
    assert [s["order"] for s in sop.content] == [0, 1]


def test_create_sop_empty_text_stored_as_null(session):
    sop = create_sop(session, ParsedSOP(title="T", objectives="   "))
    assert sop.objectives is None
    assert sop.logins_prerequisites is None


@pytest.mark.parametrize("title", ["", "   "])
def test_create_sop_requires_title(session, title):
    with pytest.raises(ValidationError, match="Title is required"):
        create_sop(session, ParsedSOP(title=title))


def test_create_sop_with_tags(session, parsed):
    sop = create_sop(session, parsed, tags=["Ops", "Security"])
    assert tag_names(session, sop) == ["Ops", "Security"]


# --- set_tags / tag_names ---

def test_set_tags_creates_missing_tags(session, sop):
    set_tags(session, sop, ["Ops"])
    tag = get_tag_by_name(session, "Ops")
    assert tag is not None
    assert tag.color == DEFAULT_TAG_COLOR


def test_set_tags_reuses_existing_tag(session, sop):
    other = _add(session, "Other")
    set_tags(session, other, ["Ops"])
    set_tags(session, sop, ["Ops"])
    assert len(session.exec(select(Tag)).all()) == 1


def test_set_tags_dedupes_and_skips_blank(session, sop):
    set_tags(session, sop, ["B", " A ", "B", "", "  "])
    assert tag_names(session, sop) == ["B", "A"]


def test_set_tags_replaces_previous(session, sop):
    set_tags(session, sop, ["A", "B"])
    set_tags(session, sop, ["B", "C"])
    assert tag_names(session, sop) == ["B", "C"]


def test_set_tags_empty_clears(session, sop):
    set_tags(session, sop, ["A"])
    set_tags(session, sop, [])
    assert tag_names(session, sop) == []
    assert get_tag_by_name(session, "A") is not None


# --- update_sop ---

def test_update_sop_overwrites(session, parsed, sop):
    updated = update_sop(session, sop.id, parsed)
    assert updated.id == sop.id
    assert updated.title == "Reset a Password"
    assert len(updated.content) == 2


def test_update_sop_bumps_updated_at(session, parsed, sop):
    before = sop.updated_at
    update_sop(session, sop.id, parsed)
    assert sop.updated_at >= before


def test_update_sop_none_tags_keeps_existing(session, parsed, sop):
    set_tags(session, sop, ["Keep"])
    update_sop(session, sop.id, parsed)
    assert tag_names(session, sop) == ["Keep"]


def test_update_sop_replaces_tags(session, parsed, sop):
    set_tags(session, sop, ["Old"])
    update_sop(session, sop.id, parsed, tags=["New"])
    assert tag_names(session, sop) == ["New"]


def test_update_sop_unknown_id(session, parsed):
    with pytest.raises(NotFoundError):
        update_sop(session, uuid4(), parsed)


def test_update_sop_blank_title(session, sop):
    with pytest.raises(ValidationError):
        update_sop(session, sop.id, ParsedSOP(title=""))


# --- list_sops ---

def test_list_sops_newest_first(session):
    now = datetime.now()
    _add(session, "Old", created_at=now - timedelta(days=2))
    _add(session, "New", created_at=now)
    _add(session, "Middle", created_at=now - timedelta(days=1))
    assert [s.title for s in list_sops(session)] == ["New", "Middle", "Old"]


def test_list_sops_ties_broken_by_title(session):
    now = datetime.now()
    _add(session, "Bravo", created_at=now)
    _add(session, "Alpha", created_at=now)
    assert [s.title for s in list_sops(session)] == ["Alpha", "Bravo"]


def test_list_sops_skips_archived(session):
    _add(session, "Live")
    _add(session, "Gone", archived=True)
    assert [s.title for s in list_sops(session)] == ["Live"]
    assert {s.title for s in list_sops(session, include_archived=True)} == {"Live", "Gone"}


def test_list_sops_search_title_and_objectives(session):
    _add(session, "VPN Setup")
    _add(session, "Laptop", objectives="Install the vpn client")
    _add(session, "Printer")
    assert {s.title for s in list_sops(session, search="VPN")} == {"VPN Setup", "Laptop"}


def test_list_sops_by_tag(session):
    tagged = _add(session, "Tagged")
    _add(session, "Untagged")
    set_tags(session, tagged, ["Ops"])
    assert [s.title for s in list_sops(session, tag="Ops")] == ["Tagged"]
    assert list_sops(session, tag="Missing") == []


# --- archive / delete ---

def test_archive_and_restore(session, sop):
    archive_sop(session, sop.id)
    assert sop.is_archived is True
    archive_sop(session, sop.id, archived=False)
    assert sop.is_archived is False


def test_archive_unknown_id(session):
    with pytest.raises(NotFoundError):
        archive_sop(session, uuid4())


def test_delete_sop_removes_associations(session, sop):
    set_tags(session, sop, ["Ops"])
    sop_id = sop.id
    delete_sop(session, sop_id)
    assert get_sop(session, sop_id) is None
    assert session.exec(select(SOPTag).where(SOPTag.sop_id == sop_id)).all() == []
    assert get_tag_by_name(session, "Ops") is not None


def test_delete_sop_unknown_id(session):
    with pytest.raises(NotFoundError):
        delete_sop(session, "not-a-uuid")


# --- to_parsed / to_exportable ---

def test_to_parsed_round_trip(session, parsed):
    sop = create_sop(session, parsed)
    back = to_parsed(sop)
    assert back.title == parsed.title
    assert back.objectives == parsed.objectives
    assert [(s.id, s.title, s.content, s.type) for s in back.steps] == \
        [(s.id, s.title, s.content, s.type) for s in parsed.steps]
    assert back.steps[1].type is StepType.decision


def test_to_parsed_null_text_is_empty(session, sop):
    back = to_parsed(sop)
    assert back.objectives == ""
    assert back.logins_prerequisites == ""
    assert back.steps == []


def test_to_exportable_carries_tags(session, parsed):
    sop = create_sop(session, parsed, tags=["Ops", "IT"])
    doc = to_exportable(session, sop)
    assert doc.tags == ["Ops", "IT"]
    assert doc.title == parsed.title
