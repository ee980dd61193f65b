"""SOP parsing: format dispatch, the YAML grammar, and the legacy plaintext grammar"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import yaml
from pydantic import ValidationError

from sophub.core.models import ParsedSOP, Step, YamlSOP
from sophub.errors import ParseFailure


YAML_EXTENSIONS = ('.yaml', '.yml')
YAML_PREFIXES = ('title:', '---')

TITLE_PREFIX = 'SOP:'
OBJECTIVES_HEADER = 'Objectives and Outcomes'
LOGINS_HEADER = 'Logins and Prerequisites'
CONTENT_HEADER = 'SOP Content'
STOP_MARKER = 'Indicators of Success'

# Only a hyphen or an em-dash separates the step number from its title.
STEP_RE = re.compile(r'^Step\s+(\d+)\s*[—-]\s*(.+)$')


class Section(str, Enum):
    """Which plaintext section the next body line belongs to"""
    none = "none"
    objectives = "objectives"
    logins = "logins"
    content = "content"


@dataclass
class _PlaintextState:
    """Accumulators threaded through the line-by-line plaintext fold."""
    section: Section = Section.none
    title: str = ''
    objectives: list[str] = field(default_factory=list)
    logins: list[str] = field(default_factory=list)
    step_title: Optional[str] = None
    step_lines: list[str] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)

    def active_buffer(self) -> Optional[list[str]]:
        """Return the buffer body lines currently go to, or None outside any section."""
        if self.section is Section.objectives:
            return self.objectives
        if self.section is Section.logins:
            return self.logins
        if self.section is Section.content and self.step_title is not None:
            return self.step_lines
        return None

    def start_step(self, title: str) -> None:
        self.flush_step()
        self.step_title = title
        self.step_lines = []

    def flush_step(self) -> None:
        """Append the pending step (if any), even when its body is empty."""
        if self.step_title is None:
            return
        self.steps.append(Step(
            title=self.step_title,
            content='\n'.join(self.step_lines).strip(),
            order=len(self.steps),
        ))
        self.step_title = None
        self.step_lines = []


def _feed(state: _PlaintextState, line: str) -> bool:
    """Apply one stripped line to state. Returns False when the stop marker is hit."""
    if line.startswith(TITLE_PREFIX):
        state.title = line[len(TITLE_PREFIX):].strip()
        return True

    if line == OBJECTIVES_HEADER:
        state.section = Section.objectives
        return True
    if line == LOGINS_HEADER:
        state.section = Section.logins
        return True
    if line.startswith(CONTENT_HEADER):
        state.section = Section.content
        return True
    if line == STOP_MARKER:
        return False

    if state.section is Section.content:
        m = STEP_RE.match(line)
        if m:
            state.start_step(m.group(2).strip())
            return True

    buffer = state.active_buffer()
    if buffer is None:
        return True
    # Blank lines only count once a buffer has content, so sections never open with one.
    if line or buffer:
        buffer.append(line)
    return True


def parse_plaintext(raw: str) -> ParsedSOP:
    """Parse the legacy line-oriented SOP format. Never raises; returns best-effort results."""
    lines = raw.split('\n')
    state = _PlaintextState()

    for line in lines:
        if not _feed(state, line.strip()):
            break
    state.flush_step()

    return ParsedSOP(
        title=state.title or lines[0].strip(),
        objectives='\n'.join(state.objectives).strip(),
        logins_prerequisites='\n'.join(state.logins).strip(),
        steps=state.steps,
    )


def _load_yaml(raw: str) -> YamlSOP:
    """Decode and validate a YAML SOP document, raising ParseFailure on any problem."""
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ParseFailure(f"Invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ParseFailure(f"Invalid SOP YAML: expected a mapping, got {type(data).__name__}")
    try:
        return YamlSOP.model_validate(data)
    except ValidationError as e:
        raise ParseFailure(f"Invalid SOP YAML: {e}") from e


def parse_yaml(raw: str) -> ParsedSOP:
    """Parse a YAML SOP document. Steps get fresh ids and order equal to their index."""
    doc = _load_yaml(raw)
    return ParsedSOP(
        title=doc.title,
        objectives=doc.objectives,
        logins_prerequisites=doc.prerequisites,
        steps=[
            Step(title=s.title, content=s.content, type=s.type, order=i)
            for i, s in enumerate(doc.steps)
        ],
    )


def parse_yaml_tags(raw: str) -> list[str]:
    """Return the tag names listed in a YAML SOP document (empty if none)."""
    return _load_yaml(raw).tags


def looks_like_yaml(raw: str, filename: Optional[str] = None) -> bool:
    """True if raw would be routed to the YAML grammar, explicitly or by sniffing."""
    if filename and filename.endswith(YAML_EXTENSIONS):
        return True
    return raw.strip().startswith(YAML_PREFIXES)


def parse_sop(raw: str, filename: Optional[str] = None) -> ParsedSOP:
    """Parse raw SOP text, choosing the grammar from the filename or the content.

    A .yaml/.yml filename forces the YAML grammar and lets ParseFailure propagate.
    Text starting with `title:` or `---` is tried as YAML first and falls back to
    plaintext on failure. Anything else is parsed as plaintext.
    """
    if filename and filename.endswith(YAML_EXTENSIONS):
        return parse_yaml(raw)

    if raw.strip().startswith(YAML_PREFIXES):
        try:
            return parse_yaml(raw)
        except ParseFailure:
            pass  # fall through to plaintext

    return parse_plaintext(raw)
