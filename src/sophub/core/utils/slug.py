"""Slug generation for export filenames"""

import re


_NON_ALNUM_RE = re.compile(r'[^a-z0-9]+')


def slugify(text: str) -> str:
    """Lower-case text and collapse every run of non [a-z0-9] characters to one hyphen."""
    return _NON_ALNUM_RE.sub('-', text.lower()).strip('-')
