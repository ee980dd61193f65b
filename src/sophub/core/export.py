"""SOP export: canonical YAML rendering, default filenames, and file output"""

from pathlib import Path
from typing import Any, Optional

import yaml

from sophub.core.models import ParsedSOP, Step, StepType
from sophub.core.utils.slug import slugify


EXPORT_EXTENSION = "yaml"
EXPORT_MIME_TYPE = "text/yaml"
DEFAULT_STEM = "sop"
NEL = "\x85"


class _ExportDumper(yaml.SafeDumper):
    """SafeDumper that never emits anchors or aliases."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    """Render multi-line strings as literal blocks; PyYAML falls back to quoting when it must.

    NEL (U+0085) is folded to a space inside plain, single-quoted and block
    scalars, so any string carrying one is double-quoted where it is escaped.
    """
    if NEL in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_ExportDumper.add_representer(str, _represent_str)


def _step_dict(step: Step) -> dict[str, str]:
    """title and content always; type only when it is not the standard default."""
    out = {"title": step.title or "", "content": step.content or ""}
    if step.type is not StepType.standard:
        out["type"] = step.type.value
    return out


def build_export(sop: ParsedSOP) -> dict[str, Any]:
    """Build the ordered export mapping: title, steps, then optional objectives/prerequisites/tags.

    Images are never exported. Tags are read from `sop.tags` when the model carries them.
    """
    data: dict[str, Any] = {
        "title": sop.title or "",
        "steps": [_step_dict(s) for s in sop.steps],
    }
    if sop.objectives:
        data["objectives"] = sop.objectives
    if sop.logins_prerequisites:
        data["prerequisites"] = sop.logins_prerequisites
    tags = [str(t) for t in getattr(sop, "tags", None) or []]
    if tags:
        data["tags"] = tags
    return data


def sop_to_yaml(sop: ParsedSOP) -> str:
    """Render an SOP as YAML text accepted back by parse_yaml."""
    return yaml.dump(
        build_export(sop),
        Dumper=_ExportDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )


def generate_filename(title: str, ext: str = EXPORT_EXTENSION) -> str:
    """Return a filesystem-safe export filename derived from title, e.g. 'my-sop-title.yaml'.

    A title with no ASCII letters or digits falls back to DEFAULT_STEM ('sop.yaml')
    rather than producing a bare extension.
    """
    return f"{slugify(title or '') or DEFAULT_STEM}.{ext}"


def write_yaml(sop: ParsedSOP, output_dir: Path, filename: Optional[str] = None) -> Path:
    """Write the YAML export of sop into output_dir. Returns the written path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / (filename or generate_filename(sop.title))
    path.write_text(sop_to_yaml(sop), encoding="utf-8")
    return path
