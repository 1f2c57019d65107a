# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Completion context detection for a single line of PHP or Blade source.

Given the text of the line under the cursor and a 0-based cursor offset, the
detector reports which Laravel helper call the cursor is in (mapped to a
symbol category) and the string typed so far.

Detection runs in this order and stops at the first hit:
1. Whole-call pass: a complete `helper('content')` call on the line whose
   argument list contains the cursor. Used by go-to-definition, where the
   cursor can be anywhere inside the call.
2. Trailing-partial pass: `helper('partial` ending exactly at the cursor,
   with the string still open. Used while typing.
3. Livewire component tag `<livewire:name` containing the cursor.
4. Static call `Identifier::partial` (facade completion).
5. Fluent chain `$var->partial` (migration method completion).

Only the current line is examined; calls split across lines are not seen.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from laravel_symbols.models import CompletionContext, SymbolCategory

logger = logging.getLogger(__name__)

# Helper spelling -> category. Table order is the tie-break order.
HELPERS: Tuple[Tuple[str, str], ...] = (
    ("route", SymbolCategory.ROUTE),
    ("to_route", SymbolCategory.ROUTE),
    ("view", SymbolCategory.VIEW),
    ("View::make", SymbolCategory.VIEW),
    ("Inertia::render", SymbolCategory.VIEW),
    ("inertia", SymbolCategory.VIEW),
    ("Route::inertia", SymbolCategory.VIEW),
    ("config", SymbolCategory.CONFIG),
    ("Config::get", SymbolCategory.CONFIG),
    ("__", SymbolCategory.TRANSLATION),
    ("trans", SymbolCategory.TRANSLATION),
    ("trans_choice", SymbolCategory.TRANSLATION),
    ("@lang", SymbolCategory.TRANSLATION),
    ("env", SymbolCategory.ENV),
    ("app", SymbolCategory.CONTAINER),
    ("resolve", SymbolCategory.CONTAINER),
    ("@livewire", SymbolCategory.LIVEWIRE),
    ("DB::table", SymbolCategory.TABLE),
    ("Schema::table", SymbolCategory.TABLE),
    ("Schema::create", SymbolCategory.TABLE),
    ("Schema::hasTable", SymbolCategory.TABLE),
    ("Schema::dropIfExists", SymbolCategory.TABLE),
)

# Helpers whose symbol is the second string argument (the first is a URI)
SECOND_ARGUMENT_HELPERS = ("Route::inertia",)

# Not part of a longer identifier, variable or static call. `->` is allowed.
_NOT_IDENTIFIER_TAIL = r"(?<![\w$:])"

COMPONENT_TAG_PATTERN = re.compile(r"<livewire:(?P<name>[\w.-]*)")
STATIC_CALL_PATTERN = re.compile(r"(?<![\w$])([A-Za-z_]\w*)\s*::\s*(\w*)$")
FLUENT_CALL_PATTERN = re.compile(r"\$(\w*)\s*->\s*(\w*)$")
NON_FACADE_IDENTIFIERS = ("self", "static", "parent")


def _call_prefix(spelling: str) -> str:
    """Regex for `spelling(` up to the first character of the symbol string."""
    parts = [re.escape(part) for part in spelling.split("::")]
    prefix = _NOT_IDENTIFIER_TAIL + r"\s*::\s*".join(parts) + r"\s*(?P<paren>\()\s*"
    if spelling in SECOND_ARGUMENT_HELPERS:
        prefix += r"(?P<uq>['\"])(?:(?!(?P=uq)).)*(?P=uq)\s*,\s*"
    return prefix


def closing_paren(line: str, start: int) -> int:
    """Offset of the `)` closing a call whose arguments begin at `start`.

    Quoted strings are skipped. Returns len(line) when the call is unclosed.
    """
    depth = 1
    quote: Optional[str] = None
    i = start
    while i < len(line):
        ch = line[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return len(line)


class _HelperPatterns:
    """Compiled whole-call and trailing-partial patterns for one helper.

    String content may contain the other quote character (`__("Don't")`).
    """

    def __init__(self, spelling: str, category: str):
        self.spelling = spelling
        self.category = category
        prefix = _call_prefix(spelling)
        self.whole = re.compile(prefix + r"(?P<q>['\"])(?P<content>(?:(?!(?P=q)).)*)(?P=q)")
        self.trailing = re.compile(prefix + r"""(?:'(?P<single>[^']*)|"(?P<double>[^"]*))$""")

    def trailing_content(self, match: "re.Match[str]") -> Tuple[str, int]:
        """Partial text of a trailing match and its start offset."""
        group = "single" if match.group("single") is not None else "double"
        return match.group(group), match.start(group)


class ContextDetector:
    """Maps (line, cursor offset) to a CompletionContext.

    Stateless apart from the compiled helper table; safe to share between
    threads.
    """

    def __init__(self, helpers: Sequence[Tuple[str, str]] = HELPERS):
        self._helpers: List[_HelperPatterns] = [
            _HelperPatterns(spelling, category) for spelling, category in helpers
        ]

    def detect(self, line: str, cursor_offset: int) -> Optional[CompletionContext]:
        """Detect the completion context at a cursor position.

        Args:
            line: Text of the current line (without terminator).
            cursor_offset: 0-based character offset, clamped to the line.

        Returns:
            CompletionContext, or None if the cursor is not in a known context.
        """
        cursor = max(0, min(cursor_offset, len(line)))

        context = self._whole_call(line, cursor)
        if context is None:
            context = self._trailing_partial(line[:cursor])
        if context is None:
            context = self._component_tag(line, cursor)
        if context is None:
            context = self._static_call(line[:cursor])
        if context is None:
            context = self._fluent_call(line[:cursor])

        if context is not None:
            logger.debug(
                f"Detected {context.category} context via '{context.helper}' "
                f"with partial '{context.partial_text}'"
            )
        return context

    def _whole_call(self, line: str, cursor: int) -> Optional[CompletionContext]:
        best: Optional[Tuple[int, CompletionContext]] = None
        for helper in self._helpers:
            for match in helper.whole.finditer(line):
                paren = match.start("paren")
                end = closing_paren(line, paren + 1)
                if not paren < cursor <= end:
                    continue
                # Innermost call wins when calls are nested
                if best is None or paren > best[0]:
                    best = (
                        paren,
                        CompletionContext(
                            category=helper.category,
                            partial_text=match.group("content"),
                            match_start_offset=match.start("content"),
                            helper=helper.spelling,
                        ),
                    )
        return best[1] if best else None

    def _trailing_partial(self, prefix: str) -> Optional[CompletionContext]:
        for helper in self._helpers:
            match = helper.trailing.search(prefix)
            if match:
                partial, start = helper.trailing_content(match)
                return CompletionContext(
                    category=helper.category,
                    partial_text=partial,
                    match_start_offset=start,
                    helper=helper.spelling,
                )
        return None

    def _component_tag(self, line: str, cursor: int) -> Optional[CompletionContext]:
        for match in COMPONENT_TAG_PATTERN.finditer(line):
            if match.start("name") <= cursor <= match.end("name"):
                return CompletionContext(
                    category=SymbolCategory.LIVEWIRE,
                    partial_text=match.group("name"),
                    match_start_offset=match.start("name"),
                    helper="<livewire:",
                )
        return None

    def _static_call(self, prefix: str) -> Optional[CompletionContext]:
        match = STATIC_CALL_PATTERN.search(prefix)
        if not match or match.group(1).lower() in NON_FACADE_IDENTIFIERS:
            return None
        return CompletionContext(
            category=SymbolCategory.FACADE,
            partial_text=match.group(2),
            match_start_offset=match.start(2),
            helper=match.group(1),
        )

    def _fluent_call(self, prefix: str) -> Optional[CompletionContext]:
        match = FLUENT_CALL_PATTERN.search(prefix)
        if not match:
            return None
        return CompletionContext(
            category=SymbolCategory.FLUENT,
            partial_text=match.group(2),
            match_start_offset=match.start(2),
            helper=f"${match.group(1)}",
        )


_default_detector = ContextDetector()


def detect(line: str, cursor_offset: int) -> Optional[CompletionContext]:
    """Detect the completion context using the built-in helper table."""
    return _default_detector.detect(line, cursor_offset)
