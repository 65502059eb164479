"""Markdown text manipulation for vault notes.

Pure functions over note text: front matter splitting and rendering,
appending and prepending content, heading-scoped insertion and
search-and-replace. Kept apart from the store so they are independently
testable.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Pattern, Tuple, Union

import frontmatter
import yaml

from actions_uri.utils import expand_js_replacement

logger = logging.getLogger(__name__)

_HEADING = re.compile(r"^(#{1,6})[ \t]+(.+?)[ \t]*$")

_YAML = frontmatter.YAMLHandler()


def split_front_matter(text: str) -> Tuple[str, str, str]:
    """Split note text into (header block, raw front matter, body).

    The header block is the exact leading text including both ``---``
    delimiters, so ``header + body == text`` always holds.
    """
    if not _YAML.detect(text):
        return "", "", text
    try:
        fm, body = _YAML.split(text)
    except ValueError:
        # Opening delimiter without a closing one: not front matter
        return "", "", text
    header = text[: len(text) - len(body)]
    return header, fm.strip("\n"), body


def parse_properties(text: str) -> Dict[str, Any]:
    """Return the front matter of a note as a mapping.

    Raises:
        yaml.YAMLError: If the front matter is not valid YAML.
    """
    _, fm, _ = split_front_matter(text)
    if not fm.strip():
        return {}
    data = yaml.safe_load(fm)
    if not isinstance(data, dict):
        logger.warning("Front matter is not a mapping, ignoring it")
        return {}
    return data


def render_with_properties(text: str, properties: Dict[str, Any]) -> str:
    """Replace the front matter of a note, keeping its body.

    An empty mapping removes the front matter block entirely.
    """
    _, _, body = split_front_matter(text)
    body = body.lstrip("\n")
    if not properties:
        return body
    post = frontmatter.Post(body)
    post.metadata.update(properties)
    # dumps() strips trailing whitespace; keep the block newline-terminated
    rendered = frontmatter.dumps(post, sort_keys=False)
    if not body or body.endswith("\n"):
        rendered += "\n"
    return rendered


def append_text(text: str, content: str, ensure_newline: bool = False) -> str:
    """Append content to the end of a note.

    With ``ensure_newline`` the existing text is terminated by a line break
    before the content is added.
    """
    if ensure_newline and text and not text.endswith("\n"):
        text += "\n"
    return text + content


def prepend_text(
    text: str,
    content: str,
    ensure_newline: bool = False,
    ignore_front_matter: bool = False,
) -> str:
    """Prepend content to a note, below its front matter unless told otherwise."""
    if ensure_newline and not content.endswith("\n"):
        content += "\n"
    if ignore_front_matter:
        return content + text
    header, _, body = split_front_matter(text)
    if header and not header.endswith("\n"):
        header += "\n"
        body = body[1:] if body.startswith("\n") else body
    return header + content + body


def _find_heading(lines: List[str], headline: str) -> Optional[Tuple[int, int]]:
    wanted = headline.strip().lstrip("#").strip()
    for index, line in enumerate(lines):
        match = _HEADING.match(line)
        if match and match.group(2) == wanted:
            return index, len(match.group(1))
    return None


def _section_end(lines: List[str], start: int, level: int) -> int:
    for index in range(start + 1, len(lines)):
        match = _HEADING.match(lines[index])
        if match and len(match.group(1)) <= level:
            return index
    return len(lines)


def append_below_headline(text: str, headline: str, content: str) -> Optional[str]:
    """Append content at the end of the section under ``headline``.

    Returns None if the headline does not exist.
    """
    lines = text.split("\n")
    found = _find_heading(lines, headline)
    if found is None:
        return None

    index, level = found
    insert_at = _section_end(lines, index, level)
    # Keep blank lines that separate the section from the next heading
    while insert_at > index + 1 and not lines[insert_at - 1].strip():
        insert_at -= 1
    new_lines = lines[:insert_at] + content.split("\n") + lines[insert_at:]
    return "\n".join(new_lines)


def prepend_below_headline(text: str, headline: str, content: str) -> Optional[str]:
    """Insert content directly below the line of ``headline``.

    Returns None if the headline does not exist.
    """
    lines = text.split("\n")
    found = _find_heading(lines, headline)
    if found is None:
        return None

    index, _ = found
    new_lines = lines[: index + 1] + content.split("\n") + lines[index + 1:]
    return "\n".join(new_lines)


def search_and_replace(
    text: str,
    search: Union[str, Pattern[str]],
    replace: str,
    count: int = 0,
) -> Optional[str]:
    """Replace occurrences of a literal string or compiled pattern.

    Literal searches replace every occurrence. Patterns expand JS-style
    replacement tokens and honour ``count`` (0 means all).

    Returns:
        The new text, or None if nothing matched.
    """
    if isinstance(search, str):
        if search not in text:
            return None
        return text.replace(search, replace)

    if not search.search(text):
        return None
    return search.sub(lambda m: expand_js_replacement(m, replace), text, count=count)
