"""
Regex substitution for ``${VAR/regex/format/flags}`` transforms.
"""

from __future__ import annotations

import re

from lsp_snippet.format_string import FormatString
from lsp_snippet.nodes import Transform

# Flag letters understood by the regex engine; ``g`` is handled by apply_transform.
REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": re.UNICODE,
}


class TransformError(ValueError):
    """A transform that cannot be compiled; the parser treats it as literal text."""


def compile_transform(regex: str, format: FormatString, flags: str, source: str) -> Transform:
    """Compile the parts of a transform.

    Raises:
        TransformError: If the regex is invalid or the format string refers
            to a capture group the regex does not define.
    """
    re_flags = 0
    for letter in flags:
        re_flags |= REGEX_FLAGS.get(letter, 0)
    try:
        pattern = re.compile(regex, re_flags)
    except re.error as e:
        raise TransformError(f"Invalid transform regex {regex!r}: {e}") from e

    missing = sorted(n for n in format.group_numbers() if n > pattern.groups)
    if missing:
        raise TransformError(
            f"Transform format refers to undefined group(s) {missing} of {regex!r}"
        )
    return Transform(pattern=pattern, format=format, flags=flags, source=source)


def apply_transform(transform: Transform, value: str) -> str:
    """Substitute the first match of the transform's pattern in ``value``,
    or every match when the ``g`` flag is set."""
    count = 0 if transform.is_global else 1
    return transform.pattern.sub(transform.format.evaluate, value, count=count)
