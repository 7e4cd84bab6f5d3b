"""Locate ``{{...}}`` placeholders and parse their argument syntax.

Three argument forms are accepted and normalized into one structure:

* positional tokens: ``{{orderby name --desc}}``
* long flags: ``{{columns --exclude Id CreatedAt}}``
* pipe pairs: ``{{between|min=@minPrice|max=@maxPrice}}``
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from sqlforge.models.errors import Diagnostic, SourceSpan
from sqlforge.template.errors import MalformedTemplateError

OPEN = "{{"
CLOSE = "}}"

_HEAD_RE = re.compile(r"\s*([A-Za-z_]\w*)(?::([\w.]+))?")
_FLAG_RE = re.compile(r"--([A-Za-z][\w-]*)(?:=(.*))?", re.DOTALL)


@dataclass(frozen=True)
class PlaceholderArgs:
    """Normalized placeholder arguments."""

    positional: tuple[str, ...] = ()
    flags: dict[str, tuple[str, ...]] = field(default_factory=dict)
    text: str = ""  # everything after the head, verbatim
    body: str = ""  # text before the first flag

    def has(self, name: str) -> bool:
        return name in self.flags

    def values(self, name: str) -> tuple[str, ...]:
        return self.flags.get(name, ())

    def value(self, name: str, default: str | None = None) -> str | None:
        vals = self.flags.get(name)
        return vals[0] if vals else default

    def items(self) -> list[str]:
        """Positional text split on top-level commas only."""
        return [tok for tok, _ in split_top_level(self.body, ",") if tok]


@dataclass(frozen=True)
class Placeholder:
    """One ``{{...}}`` occurrence in the text of a single pass."""

    kind: str
    variant: str | None
    args: PlaceholderArgs
    start: int
    end: int
    raw: str

    @property
    def span(self) -> SourceSpan:
        return SourceSpan(start=self.start, end=self.end)


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


def _scan(text: str) -> tuple[list[tuple[int, int]], list[int], list[int]]:
    """Return innermost spans plus positions of unmatched opens and closes."""
    stack: list[list[int]] = []  # [start, has_child]
    innermost: list[tuple[int, int]] = []
    stray_closes: list[int] = []
    i = 0
    n = len(text)
    while i < n - 1:
        pair = text[i : i + 2]
        if pair == OPEN:
            if stack:
                stack[-1][1] = 1
            stack.append([i, 0])
            i += 2
        elif pair == CLOSE:
            if stack:
                start, has_child = stack.pop()
                if not has_child:
                    innermost.append((start, i + 2))
            else:
                stray_closes.append(i)
            i += 2
        else:
            i += 1
    return innermost, [frame[0] for frame in stack], stray_closes


def check_balance(text: str) -> list[Diagnostic]:
    """Report every unmatched ``{{`` or ``}}``."""
    _, opens, closes = _scan(text)
    diagnostics = [
        Diagnostic(
            code="UNBALANCED_BRACES",
            message=f"Unclosed '{{{{' at offset {pos}",
            span=SourceSpan(start=pos, end=pos + 2),
        )
        for pos in opens
    ]
    diagnostics.extend(
        Diagnostic(
            code="UNBALANCED_BRACES",
            message=f"Unmatched '}}}}' at offset {pos}",
            span=SourceSpan(start=pos, end=pos + 2),
        )
        for pos in closes
    )
    return diagnostics


def find_innermost(text: str) -> list[Placeholder]:
    """Innermost, non-overlapping placeholders, left to right.

    Raises ``MalformedTemplateError`` for a placeholder whose head is not a
    ``kind[:variant]`` word.
    """
    spans, _, _ = _scan(text)
    placeholders = []
    for start, end in sorted(spans):
        raw = text[start:end]
        kind, variant, args = parse_placeholder(raw[2:-2])
        placeholders.append(
            Placeholder(kind=kind, variant=variant, args=args, start=start, end=end, raw=raw)
        )
    return placeholders


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def split_top_level(text: str, separators: str = ", \t\r\n") -> list[tuple[str, int]]:
    """Split on separator characters outside quotes and parentheses.

    Returns ``(token, offset)`` pairs; tokens are stripped, empties kept out
    only when separators are whitespace.
    """
    tokens: list[tuple[str, int]] = []
    depth = 0
    quote: str | None = None
    start = 0
    for i, ch in enumerate(text):
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(depth - 1, 0)
        elif depth == 0 and ch in separators:
            _append_token(tokens, text, start, i)
            start = i + 1
    _append_token(tokens, text, start, len(text))
    return tokens


def _append_token(tokens: list[tuple[str, int]], text: str, start: int, end: int) -> None:
    raw = text[start:end]
    token = raw.strip()
    if token:
        tokens.append((token, start + (len(raw) - len(raw.lstrip()))))


def _split_pipes(body: str) -> list[str]:
    """Split on single ``|`` outside quotes and parentheses; ``||`` is kept."""
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    start = 0
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == "|" and depth == 0:
            if i + 1 < n and body[i + 1] == "|":
                i += 2
                continue
            parts.append(body[start:i])
            start = i + 1
        i += 1
    parts.append(body[start:])
    return parts


def _normalize_flag(name: str) -> str:
    return name.lower().replace("-", "_")


def _split_values(raw: str) -> tuple[str, ...]:
    return tuple(tok for tok, _ in split_top_level(raw, ","))


def parse_placeholder(body: str) -> tuple[str, str | None, PlaceholderArgs]:
    """Parse the inside of ``{{...}}`` into kind, variant and arguments."""
    segments = _split_pipes(body)
    head_segment = segments[0]
    match = _HEAD_RE.match(head_segment)
    if match is None:
        raise MalformedTemplateError(
            f"Placeholder '{{{{{body}}}}}' does not start with a kind name"
        )
    kind = match.group(1).lower()
    variant = match.group(2)
    rest = head_segment[match.end() :]
    if rest and not rest[0].isspace() and rest[0] != ",":
        raise MalformedTemplateError(f"Invalid placeholder head in '{{{{{body}}}}}'")

    positional: list[str] = []
    flags: dict[str, tuple[str, ...]] = {}
    current: str | None = None
    body_end = len(rest)

    for token, offset in split_top_level(rest):
        flag = _FLAG_RE.fullmatch(token)
        if flag is not None:
            if current is None:
                body_end = min(body_end, offset)
            current = _normalize_flag(flag.group(1))
            inline = flag.group(2)
            flags[current] = _split_values(inline) if inline else ()
        elif current is not None:
            flags[current] = flags[current] + (token,)
        else:
            positional.append(token)

    for pair in segments[1:]:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not key:
            continue
        flags[_normalize_flag(key)] = _split_values(value) if sep else ()

    args = PlaceholderArgs(
        positional=tuple(positional),
        flags=flags,
        text=rest.strip(),
        body=rest[:body_end].strip(),
    )
    return kind, variant, args
