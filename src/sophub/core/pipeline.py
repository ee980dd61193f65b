"""Pipeline step functions: import files into the store and export stored SOPs to YAML"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import UUID

from sqlmodel import Session

from sophub.core.export import DEFAULT_STEM, EXPORT_EXTENSION, generate_filename, write_yaml
from sophub.core.parse import looks_like_yaml, parse_sop, parse_yaml_tags
from sophub.core.utils.files import discover_files, read_text
from sophub.core.utils.slug import slugify
from sophub.crud.models import SOP
from sophub.crud.sops import create_sop, get_sop, to_exportable, update_sop
from sophub.errors import ImportFailure, NotFoundError, ParseFailure, ValidationError


logger = logging.getLogger(__name__)


@dataclass
class ImportedSOP:
    """Summary of one imported file; safe to use after the session closes."""
    path:   Path
    status: str        # 'created' or 'updated'
    sop_id: UUID
    title:  str
    steps:  int
    tags:   list[str]


def _yaml_tags(raw: str, filename: str) -> list[str]:
    """Tag names from a YAML source; plaintext (including YAML fallbacks) carries none."""
    if not looks_like_yaml(raw, filename):
        return []
    try:
        return parse_yaml_tags(raw)
    except ParseFailure:
        return []


def run_import(
    engine,
    path: str,
    created_by: Optional[str] = None,
    sop_id: Optional[str] = None,
    ) -> list[ImportedSOP]:
    """Parse every SOP file under path and store it. Commits once, after all files parse.

    With sop_id, path must be a single file whose content overrides that SOP
    (title is kept when the file yields none; tags only change if the file lists some).
    Raises ImportFailure when a file cannot be parsed.
    """
    files = discover_files(Path(path))
    if sop_id is not None and len(files) != 1:
        raise ValidationError(f"Replacing an SOP needs exactly one source file, found {len(files)}")

    results = []
    with Session(engine) as session:
        for p in files:
            try:
                raw = read_text(p)
            except UnicodeDecodeError as e:
                raise ImportFailure(p, e) from e
            try:
                parsed = parse_sop(raw, p.name)
            except ParseFailure as e:
                raise ImportFailure(p, e) from e
            tags = _yaml_tags(raw, p.name)

            if sop_id is not None:
                existing = get_sop(session, sop_id)
                if existing is None:
                    raise NotFoundError(f"SOP {sop_id} not found")
                if not parsed.title:
                    parsed = parsed.model_copy(update={"title": existing.title})
                sop = update_sop(session, existing.id, parsed, tags=tags or None)
                status = "updated"
            else:
                sop = create_sop(session, parsed, created_by=created_by, tags=tags)
                status = "created"

            logger.debug("Imported %s as %s", p, sop.id)
            results.append(ImportedSOP(
                path=p, status=status, sop_id=sop.id, title=sop.title,
                steps=len(sop.content), tags=tags,
            ))
        session.commit()
    return results


def run_export(
    session: Session,
    sops: list[SOP],
    output_dir: Path,
    ) -> list[tuple[str, Path]]:
    """Write one YAML file per SOP to output_dir. Returns (title, path) pairs.

    SOPs whose titles produce the same filename get their id prefix appended.
    """
    results = []
    used: set[str] = set()
    for sop in sops:
        filename = generate_filename(sop.title)
        if filename in used:
            filename = f"{slugify(sop.title) or DEFAULT_STEM}-{str(sop.id)[:8]}.{EXPORT_EXTENSION}"
        used.add(filename)
        out = write_yaml(to_exportable(session, sop), output_dir, filename)
        logger.debug("Exported SOP %s to %s", sop.id, out)
        results.append((sop.title, out))
    return results
