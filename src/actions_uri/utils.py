"""Utility functions for the Actions URI server."""
import re
from typing import Match, Pattern, Tuple

# Characters that are not allowed in note file names
_ILLEGAL_PATH_CHARS = re.compile(r'[\\:*?"<>|\x00-\x1f]')

_CAMEL_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z\d]+)")

_REGEX_LITERAL = re.compile(r"^/(.*)/([a-z]*)$", re.DOTALL)
_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}
# JS flags that only change matching mechanics we don't replicate
_IGNORED_REGEX_FLAGS = {"g", "u", "y", "d"}

_JS_REPLACEMENT_TOKEN = re.compile(r"\$(\$|&|\d{1,2}|<[^>]*>)")
# JS named group "(?<name>"; lookbehinds "(?<=" and "(?<!" are left alone
_JS_NAMED_GROUP = re.compile(r"(?<!\\)\(\?<(?=[A-Za-z_])")


def sanitize_file_path(filename: str, is_folder: bool = False) -> str:
    """Normalize a vault-relative note path.

    - Backslashes become forward slashes, duplicate slashes collapse
    - Leading slashes and ``.``/``..`` segments are dropped
    - Characters that are illegal in file names are stripped
    - A ``.md`` extension is added unless one is present (any case)

    Examples:
        "/Folder//Note" -> "Folder/Note.md"
        "a/../b?.md" -> "a/b.md"
        "Daily.MD" -> "Daily.MD"

    Args:
        filename: Raw path as received from a transport.
        is_folder: When True, no extension is appended.

    Returns:
        The sanitized path, or an empty string if nothing usable is left.
    """
    if not filename:
        return ""

    segments = []
    for segment in filename.strip().replace("\\", "/").split("/"):
        segment = _ILLEGAL_PATH_CHARS.sub("", segment).strip()
        if segment in ("", ".", ".."):
            continue
        segments.append(segment)

    path = "/".join(segments)
    if not path:
        return ""
    if not is_folder and not path.lower().endswith(".md"):
        path += ".md"
    return path


def kebab_case(key: str) -> str:
    """Convert a camelCase or snake_case key to kebab-case.

    Examples:
        "filePath" -> "file-path"
        "result-frontMatter" -> "result-front-matter"
        "call_id" -> "call-id"
    """
    result = _ACRONYM_BOUNDARY.sub(r"\1-\2", key)
    result = _CAMEL_BOUNDARY.sub(r"\1-\2", result)
    return result.replace("_", "-").lower()


def parse_string_into_regex(search: str) -> Tuple[Pattern[str], int]:
    """Parse a search string into a compiled pattern.

    Accepts either a JS-style literal (``/pattern/flags``) or a bare pattern.
    A literal without the ``g`` flag replaces only the first match; a bare
    pattern replaces all matches.
    JS named groups ``(?<name>...)`` are rewritten to Python syntax.

    Returns:
        Tuple of (compiled pattern, replacement count where 0 means all)

    Raises:
        ValueError: If the flags or the pattern are invalid.
    """
    literal = _REGEX_LITERAL.match(search)
    if not literal:
        return re.compile(_JS_NAMED_GROUP.sub("(?P<", search)), 0

    pattern, flag_str = literal.groups()
    pattern = _JS_NAMED_GROUP.sub("(?P<", pattern)
    flags = 0
    for flag in flag_str:
        if flag in _REGEX_FLAGS:
            flags |= _REGEX_FLAGS[flag]
        elif flag not in _IGNORED_REGEX_FLAGS:
            raise ValueError(f"Unsupported regex flag '{flag}'")
    count = 0 if "g" in flag_str else 1
    return re.compile(pattern, flags), count


def expand_js_replacement(match: Match[str], template: str) -> str:
    """Expand JS-style replacement tokens (``$1``, ``$<name>``, ``$&``, ``$$``)."""

    def _token(token_match: Match[str]) -> str:
        token = token_match.group(1)
        if token == "$":
            return "$"
        if token == "&":
            return match.group(0)
        try:
            if token.startswith("<"):
                return match.group(token[1:-1]) or ""
            index = int(token)
            if 0 < index <= len(match.groups()):
                return match.group(index) or ""
        except IndexError:
            pass
        # Unknown group references stay literal, as in JS
        return token_match.group(0)

    return _JS_REPLACEMENT_TOKEN.sub(_token, template)
