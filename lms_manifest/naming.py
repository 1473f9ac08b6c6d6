'''
Turn display titles from the course page into filesystem-friendly names.

Section titles look like ``Getting Started (7m)`` and chapter titles like
``3- Installing Tools (2:14)``. When a title does not follow that shape it is
passed through untouched; ``NameMatch.matched`` records which branch was taken.
'''

import logging
import re
from typing import NamedTuple

logger = logging.getLogger(__name__)

# "<title> (<meta>" - the title stops at the first " ("
SECTION_NAME_RE = re.compile(r"(.*?) \(.*")
# "<number>- <title> (<meta>" anywhere in the text; the title runs to the last " ("
CHAPTER_NAME_RE = re.compile(r"(\d+)- (.*) \(.*")


class NameMatch(NamedTuple):
    text: str
    matched: bool


def to_slug(text: str) -> str:
    """Lowercase every space-separated token and join them with underscores.

    Only the literal space is a separator, so runs of spaces leave empty
    segments behind (``"a  b"`` becomes ``"a__b"``).
    """
    return "_".join(token.lower() for token in text.split(" "))


def match_section_name(text: str) -> NameMatch:
    m = SECTION_NAME_RE.match(text)
    if not m:
        logger.debug(f"Section name does not match pattern, keeping as is: {text!r}")
        return NameMatch(text, False)
    return NameMatch(to_slug(m.group(1)) + text[m.end():], True)


def match_chapter_name(text: str) -> NameMatch:
    m = CHAPTER_NAME_RE.search(text)
    if not m:
        logger.debug(f"Chapter name does not match pattern, keeping as is: {text!r}")
        return NameMatch(text, False)
    number, title = m.groups()
    return NameMatch(text[:m.start()] + f"{number}_{to_slug(title)}" + text[m.end():], True)


def normalize_section_name(text: str) -> str:
    return match_section_name(text).text


def normalize_chapter_name(text: str) -> str:
    return match_chapter_name(text).text
