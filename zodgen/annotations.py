# File: zodgen/annotations.py
"""
zodgen - Documentation Annotation Parser
=========================================
Turns the free-text documentation attached to a model or field into a
structured ``ZodAnnotation``.  Three kinds of directive are recognised:

    @zod.string.min(3).max(20).describe("Display name")   validator chain
    @kyselyType(import('./types').Address | null)          external schema
    @crud.create.omit(["slug"])                            business rules

The chain grammar is tiny but irregular (nested calls, quoted strings,
regex literals), so it is scanned by hand.  The parser never raises on
malformed text: anything it cannot make sense of is passed through as-is.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.annotations")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_ZOD_LINE_RE: re.Pattern[str] = re.compile(r"///\s*@zod\.(.+)")
_ZOD_INLINE_RE: re.Pattern[str] = re.compile(r"@zod\.(.+)")
_SEGMENT_RE: re.Pattern[str] = re.compile(r"^(\w+)(?:\((.*)\))?$", re.DOTALL)
_QUOTED_NAME_RE: re.Pattern[str] = re.compile(r"[\"']([^\"']+)[\"']")
_WHOLE_QUOTED_RE: re.Pattern[str] = re.compile(r"^[\"'](.*)[\"']$", re.DOTALL)
_MESSAGE_RE: re.Pattern[str] = re.compile(r"message\s*:\s*[\"']([^\"']+)[\"']")
_REGEX_ARGS_RE: re.Pattern[str] = re.compile(
    r"^(/[^/]+/[gimuy]*)\s*(?:,\s*[\"']([^\"']+)[\"'])?$"
)
_TYPE_OVERRIDE_RE: re.Pattern[str] = re.compile(r"@kyselyType\(")
_RULE_RE: re.Pattern[str] = re.compile(r"@crud\.([A-Za-z_][\w.]*)\(")

# Rendered validators that replace the inferred base primitive entirely.
TOP_LEVEL_VALIDATOR_RE: re.Pattern[str] = re.compile(
    r"^\.(string|number|boolean|bigint|date|enum|cuid|cuid2|uuid|email|url"
    r"|datetime|ulid|emoji|base64|ipv4|ipv6)\("
)

# First-segment names kept as validators instead of being read as a type.
TOP_LEVEL_FIRST_SEGMENTS: FrozenSet[str] = frozenset(
    {
        "email", "url", "uuid", "cuid", "cuid2", "ulid", "emoji",
        "base64", "ipv4", "ipv6", "datetime", "date",
    }
)

TYPE_SELECTORS: FrozenSet[str] = frozenset(
    {"string", "number", "boolean", "date", "bigint", "array", "object"}
)

# Chain segments that express optionality rather than a constraint
NULLABILITY_VALIDATORS: FrozenSet[str] = frozenset(
    {".nullable()", ".nullish()", ".optional()"}
)

_UNESCAPES: Tuple[Tuple[str, str], ...] = (
    ('\\"', '"'),
    ("\\'", "'"),
    ("\\n", "\n"),
    ("\\r", "\r"),
    ("\\t", "\t"),
    ("\\\\", "\\"),
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainSegment:
    """One dot-separated piece of a validator chain."""

    raw: str
    name: Optional[str] = None
    args: Optional[str] = None

    @property
    def is_raw(self) -> bool:
        """True when the segment did not match ``name`` / ``name(args)``."""
        return self.name is None


@dataclass(frozen=True)
class ZodAnnotation:
    """
    Structured view of one documentation blob.

    ``validators`` holds rendered chain members (``.min(3)``) in source
    order, excluding ``brand`` and ``describe`` which live on their own
    attributes.  ``rules`` holds every ``@crud.<key>(<args>)`` directive
    with its raw argument text.
    """

    chain: str = ""
    segments: Tuple[ChainSegment, ...] = ()
    type_selector: Optional[str] = None
    validators: Tuple[str, ...] = ()
    brand: Optional[str] = None
    description: Optional[str] = None
    custom_errors: Dict[str, str] = field(default_factory=dict)
    type_override: Optional[str] = None
    rules: Tuple[Tuple[str, str], ...] = ()

    @property
    def brand_marker(self) -> str:
        return f'.brand("{self.brand}")' if self.brand else ""

    @property
    def validator_chain(self) -> str:
        """All validators joined, followed by the brand marker."""
        return "".join(self.validators) + self.brand_marker

    @property
    def first_is_top_level(self) -> bool:
        return bool(self.validators) and bool(
            TOP_LEVEL_VALIDATOR_RE.match(self.validators[0])
        )

    @property
    def declares_nullability(self) -> bool:
        return any(v in (".nullable()", ".nullish()") for v in self.validators)

    def has_validator(self, *names: str) -> bool:
        """True if any validator is exactly ``.name()`` for one of *names*."""
        wanted = {f".{n}()" for n in names}
        return any(v in wanted for v in self.validators)

    def rule_values(self, key: str) -> List[str]:
        """Raw argument text of every ``@crud.<key>(...)`` occurrence."""
        return [args for rule_key, args in self.rules if rule_key == key]


# ---------------------------------------------------------------------------
# Scanners
# ---------------------------------------------------------------------------


def split_chain(chain: str) -> List[str]:
    """
    Split a validator chain on ``.`` at parenthesis depth 0.

    An unescaped ``/`` outside a quoted string toggles regex-literal mode;
    inside a regex literal or a quoted string neither parentheses nor dots
    are interpreted.

        >>> split_chain('string.regex(/a.b/, "msg")')
        ['string', 'regex(/a.b/, "msg")']
    """
    parts: List[str] = []
    current: List[str] = []
    depth: int = 0
    in_regex: bool = False
    quote: Optional[str] = None

    for index, char in enumerate(chain):
        escaped: bool = index > 0 and chain[index - 1] == "\\"
        if quote is not None:
            if char == quote and not escaped:
                quote = None
            current.append(char)
            continue

        if char == "/" and not escaped:
            in_regex = not in_regex
        elif not in_regex and char in ("'", '"', "`"):
            quote = char

        if not in_regex and quote is None:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            elif char == "." and depth == 0:
                if current:
                    parts.append("".join(current))
                current = []
                continue

        current.append(char)

    if current:
        parts.append("".join(current))
    return parts


def find_closing_paren(text: str, open_index: int) -> int:
    """
    Index of the ``)`` matching the ``(`` at *open_index*, or -1.

    Parentheses inside single, double or backtick quoted strings are
    ignored, and backslash-escaped quotes do not end a string.
    """
    depth: int = 0
    quote: Optional[str] = None
    escaped: bool = False

    for index in range(open_index, len(text)):
        char: str = text[index]
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in ("'", '"', "`"):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def scan_rules(documentation: str) -> Tuple[Tuple[str, str], ...]:
    """All ``@crud.<key>(<args>)`` directives in order of appearance."""
    rules: List[Tuple[str, str]] = []
    for match in _RULE_RE.finditer(documentation):
        open_index: int = match.end() - 1
        close_index: int = find_closing_paren(documentation, open_index)
        if close_index < 0:
            logger.warning(
                "Unbalanced parentheses in @crud.%s directive; ignoring it.",
                match.group(1),
            )
            continue
        rules.append(
            (match.group(1), documentation[open_index + 1 : close_index].strip())
        )
    return tuple(rules)


def _scan_type_override(documentation: str) -> Optional[str]:
    match = _TYPE_OVERRIDE_RE.search(documentation)
    if match is None:
        return None
    open_index: int = match.end() - 1
    close_index: int = find_closing_paren(documentation, open_index)
    if close_index < 0:
        logger.warning("Unbalanced @kyselyType(...) directive; ignoring it.")
        return None
    inner: str = documentation[open_index + 1 : close_index].strip()
    return inner or None


def unescape_description(text: str) -> str:
    for escaped, plain in _UNESCAPES:
        text = text.replace(escaped, plain)
    return text


# ---------------------------------------------------------------------------
# Segment rendering
# ---------------------------------------------------------------------------


def _render_segment(
    name: str,
    args: Optional[str],
    custom_errors: Dict[str, str],
) -> str:
    if not args:
        return f".{name}()"

    if "{" in args and "}" in args:
        message_match = _MESSAGE_RE.search(args)
        if message_match:
            custom_errors[name] = message_match.group(1)
        return f".{name}({args})"

    if name == "regex" and "/" in args:
        regex_match = _REGEX_ARGS_RE.match(args)
        if regex_match:
            pattern, message = regex_match.group(1), regex_match.group(2)
            if message:
                return f'.regex({pattern}, "{message}")'
            return f".regex({pattern})"

    return f".{name}({args})"


def _extract_chain(documentation: str) -> Optional[str]:
    match = _ZOD_LINE_RE.search(documentation) or _ZOD_INLINE_RE.search(documentation)
    if match is None:
        return None
    return match.group(1).strip()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def parse_annotation(documentation: Optional[str]) -> Optional[ZodAnnotation]:
    """
    Parse *documentation* into a ``ZodAnnotation``.

    Returns None when the text is empty or carries no recognised
    directive.  Parsing is pure: the same input always yields an equal
    result.
    """
    if not documentation:
        return None

    chain: Optional[str] = _extract_chain(documentation)
    type_override: Optional[str] = _scan_type_override(documentation)
    rules: Tuple[Tuple[str, str], ...] = scan_rules(documentation)

    if chain is None and type_override is None and not rules:
        return None

    segments: List[ChainSegment] = []
    validators: List[str] = []
    custom_errors: Dict[str, str] = {}
    type_selector: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None

    parts: List[str] = split_chain(chain) if chain else []
    first_is_top_level: bool = bool(parts) and parts[0] in TOP_LEVEL_FIRST_SEGMENTS

    for index, part in enumerate(parts):
        if index == 0 and not first_is_top_level and part in TYPE_SELECTORS:
            type_selector = part
            segments.append(ChainSegment(raw=part, name=part))
            continue

        segment_match = _SEGMENT_RE.match(part)
        if segment_match is None:
            logger.debug("Passing through unparseable chain segment %r.", part)
            segments.append(ChainSegment(raw=part))
            validators.append(f".{part}")
            continue

        name, args = segment_match.group(1), segment_match.group(2)
        segments.append(ChainSegment(raw=part, name=name, args=args))

        if name == "brand":
            brand_match = _QUOTED_NAME_RE.search(args or "")
            if brand_match:
                brand = brand_match.group(1)
                continue
            logger.debug("Passing through brand segment without a name: %r.", part)
            validators.append(f".{part}")
            continue

        if name == "describe":
            quoted = _WHOLE_QUOTED_RE.match(args or "")
            if quoted:
                description = unescape_description(quoted.group(1))
                continue
            logger.debug("Passing through describe segment without a string: %r.", part)
            validators.append(f".{part}")
            continue

        validators.append(_render_segment(name, args, custom_errors))

    return ZodAnnotation(
        chain=chain or "",
        segments=tuple(segments),
        type_selector=type_selector,
        validators=tuple(validators),
        brand=brand,
        description=description,
        custom_errors=custom_errors,
        type_override=type_override,
        rules=rules,
    )


def strip_directives(documentation: Optional[str]) -> List[str]:
    """
    Documentation lines with every recognised directive removed.

    ``@kyselyType(...)`` and ``@crud.<key>(...)`` are cut out of their
    line, and a ``@zod.`` chain is cut from its marker to the end of the
    line.  Prose around a directive is kept; lines left empty are dropped.
    """
    if not documentation:
        return []

    override: Optional[str] = _scan_type_override(documentation)
    text: str = documentation
    if override is not None:
        start: int = text.find("@kyselyType(")
        end: int = find_closing_paren(text, start + len("@kyselyType"))
        text = text[:start] + text[end + 1 :]

    kept: List[str] = []
    for line in text.splitlines():
        stripped: str = line.strip()
        if stripped.startswith("///"):
            stripped = stripped[3:].strip()
        stripped = _cut_inline_directives(stripped)
        if stripped:
            kept.append(stripped)
    return kept


def _cut_inline_directives(line: str) -> str:
    match = _RULE_RE.search(line)
    while match is not None:
        close_index: int = find_closing_paren(line, match.end() - 1)
        if close_index < 0:
            line = line[: match.start()]
            break
        line = f"{line[: match.start()].rstrip()} {line[close_index + 1 :].lstrip()}"
        match = _RULE_RE.search(line)

    zod_index: int = line.find("@zod.")
    if zod_index >= 0:
        line = line[:zod_index]
    return line.strip()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ChainSegment",
    "NULLABILITY_VALIDATORS",
    "TOP_LEVEL_FIRST_SEGMENTS",
    "TOP_LEVEL_VALIDATOR_RE",
    "TYPE_SELECTORS",
    "ZodAnnotation",
    "find_closing_paren",
    "parse_annotation",
    "scan_rules",
    "split_chain",
    "strip_directives",
    "unescape_description",
]

logger.debug("zodgen.annotations loaded — %d public symbols.", len(__all__))
