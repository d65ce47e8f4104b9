# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Script extraction for Vue single-file components."""

import re
from typing import Optional, Tuple

SCRIPT_BLOCK_PATTERN = re.compile(
    r"(<script\b(?P<attrs>[^>]*)>)(?P<body>.*?)</script\s*>", re.IGNORECASE | re.DOTALL
)
LANG_PATTERN = re.compile(r"""\blang\s*=\s*["']?(?P<lang>[\w-]+)""", re.IGNORECASE)


def _blank(text: str) -> str:
    # Keep newlines so line numbers still match the .vue file
    return re.sub(r"[^\n]", " ", text)


def extract_script(source: str) -> Tuple[str, Optional[str]]:
    """Return module code of all <script> blocks and the block language.

    Everything outside the script bodies is replaced with spaces, so the
    result has the same line layout as the component.

    Returns:
        (code, lang) where lang is the lang attribute of the first block
        that declares one ("ts", "tsx", ...), or None.
    """
    parts = []
    lang: Optional[str] = None
    position = 0
    for match in SCRIPT_BLOCK_PATTERN.finditer(source):
        body_start, body_end = match.span("body")
        parts.append(_blank(source[position:body_start]))
        parts.append(source[body_start:body_end])
        position = body_end
        if lang is None:
            lang_match = LANG_PATTERN.search(match.group("attrs"))
            if lang_match:
                lang = lang_match.group("lang").lower()
    parts.append(_blank(source[position:]))
    return "".join(parts), lang
