"""Post-processing for assistant replies.

The provider likes to answer with GFM tables, which the chat bubble renders
poorly on small screens. ``enhance_markdown`` turns table rows into bold
label lines and bullets, then tidies heading/list spacing.

Re-applying it to its own output is a no-op. Input with partial pipe
syntax (e.g. a row missing cells) is flattened best-effort and may not be
stable under a second pass.
"""
import logging
import re

logger = logging.getLogger(__name__)

BEST_SUITED_LABEL = re.compile(r"best\s+suited\s+for", re.IGNORECASE)
_BOLD_BEST_SUITED = re.compile(r"^(?:[-+*]\s+)?(?:\*\*|__)\s*best\s+suited\s+for", re.IGNORECASE)
_BARE_BEST_SUITED = re.compile(r"^best\s+suited\s+for\s*:?$", re.IGNORECASE)

_DIVIDER_CELL = re.compile(r"^:?-{2,}:?$")
_HEADING = re.compile(r"^#{1,6}\s")
_HEADING_START = re.compile(r"^#{1,6}(?!#)")
_HEADING_NO_SPACE = re.compile(r"^(#{1,6})([^#\s])")
_BULLET_NO_SPACE = re.compile(r"^(\s*)([-+])([A-Za-z₹$*_\[(])")
_STAR_BULLET_NO_SPACE = re.compile(r"^(\s*)\*([A-Za-z₹$\[(][^*]*)$")
_NUMBERED_NO_SPACE = re.compile(r"^(\s*)(\d+[.)])([A-Za-z₹$*_\[(])")
_PIPES = re.compile(r"\s*\|+\s*")
_EXCESS_BLANKS = re.compile(r"\n(?:[ \t]*\n){2,}")


def enhance_markdown(text: str) -> str:
    """Reformat raw assistant markdown into chat-friendly markdown."""
    if not text:
        return text

    lines = text.split("\n")
    best_suited = _best_suited_ranges(lines)

    lines = _convert_table_rows(lines, skip=best_suited)
    lines, best_suited = _drop_header_rows(lines, best_suited)
    lines = _reflow_best_suited(lines, best_suited)
    lines = [_strip_pipes(line) for line in lines]
    lines = [_fix_heading(line) for line in lines]
    lines = [_fix_list_marker(line) for line in lines]
    lines = _space_headings(lines)

    result = _EXCESS_BLANKS.sub("\n\n", "\n".join(lines))
    return result


def _cells(line: str) -> list[str] | None:
    """Split a pipe-delimited row into trimmed cells, or None if not a row."""
    stripped = line.strip()
    if stripped.count("|") < 2:
        return None
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [c.strip() for c in stripped.split("|")]


def _is_divider(line: str) -> bool:
    cells = _cells(line)
    if not cells:
        return False
    non_empty = [c for c in cells if c]
    return bool(non_empty) and all(_DIVIDER_CELL.match(c) for c in non_empty)


def _is_header(lines: list[str], index: int) -> bool:
    return (
        _cells(lines[index]) is not None
        and not _is_divider(lines[index])
        and index + 1 < len(lines)
        and _is_divider(lines[index + 1])
    )


def _best_suited_ranges(lines: list[str]) -> list[tuple[int, int]]:
    """Index ranges [start, end) of each "Best Suited For" section.

    A section runs from the line carrying the label to the next heading.
    """
    ranges = []
    i = 0
    while i < len(lines):
        if _opens_best_suited(lines[i]):
            end = i + 1
            while end < len(lines) and not _HEADING_START.match(lines[end].lstrip()):
                end += 1
            ranges.append((i, end))
            i = end
        else:
            i += 1
    return ranges


def _opens_best_suited(line: str) -> bool:
    """True for a heading, bold label, table cell or bare line naming the section.

    Prose that merely mentions "best suited for" does not open a section.
    """
    stripped = line.strip()
    if not BEST_SUITED_LABEL.search(stripped):
        return False
    if _HEADING_START.match(stripped) or _BOLD_BEST_SUITED.match(stripped):
        return True
    if _BARE_BEST_SUITED.match(stripped):
        return True
    cells = _cells(stripped)
    return bool(cells) and any(
        BEST_SUITED_LABEL.match(cell.strip("*_ ")) for cell in cells
    )


def _in_ranges(index: int, ranges: list[tuple[int, int]]) -> bool:
    return any(start <= index < end for start, end in ranges)


def _convert_table_rows(lines: list[str], skip: list[tuple[int, int]]) -> list[str]:
    out = []
    for i, line in enumerate(lines):
        cells = _cells(line)
        if (
            cells is not None
            and len(cells) == 3
            and all(cells)
            and not _in_ranges(i, skip)
            and not _is_divider(line)
            and not _is_header(lines, i)
        ):
            label, value, emphasis = cells
            out.append(f"**{label}**: {value} - _{emphasis}_")
        else:
            out.append(line)
    return out


def _drop_header_rows(
    lines: list[str], ranges: list[tuple[int, int]]
) -> tuple[list[str], list[tuple[int, int]]]:
    """Remove table header and divider rows, shifting section ranges to match."""
    drop = set()
    for i, line in enumerate(lines):
        if _is_divider(line):
            drop.add(i)
        elif _is_header(lines, i):
            drop.add(i)

    kept = [line for i, line in enumerate(lines) if i not in drop]
    shifted = []
    for start, end in ranges:
        new_start = start - sum(1 for d in drop if d < start)
        new_end = end - sum(1 for d in drop if d < end)
        shifted.append((new_start, new_end))
    return kept, shifted


def _reflow_best_suited(lines: list[str], ranges: list[tuple[int, int]]) -> list[str]:
    """Group the section's pipe tokens into (label, recommendation, reason) bullets."""
    if not ranges:
        return lines

    out = []
    cursor = 0
    for start, end in ranges:
        out.extend(lines[cursor:start])
        out.extend(_reflow_section(lines[start:end]))
        cursor = end
    out.extend(lines[cursor:])
    return out


def _reflow_section(section: list[str]) -> list[str]:
    title, rest = section[0], section[1:]
    tokens: list[str] = []

    if "|" in title:
        title, trailing = title.split("|", 1)
        title = title.rstrip()
        tokens.extend(_tokens(trailing))

    out = [title]
    for line in rest:
        if "|" in line:
            tokens.extend(_tokens(line))
        else:
            out.extend(_flush(tokens))
            tokens = []
            out.append(line)
    out.extend(_flush(tokens))
    return out


def _tokens(line: str) -> list[str]:
    parts = [p.strip(" :") for p in line.split("|")]
    return [p for p in parts if p and not _DIVIDER_CELL.match(p)]


def _flush(tokens: list[str]) -> list[str]:
    bullets = []
    for i in range(0, len(tokens) - len(tokens) % 3, 3):
        label, recommendation, reason = tokens[i : i + 3]
        bullets.append(f"- **{label}**: {recommendation} - _{reason}_")
    leftover = tokens[len(tokens) - len(tokens) % 3 :]
    if leftover:
        logger.debug(f"Best Suited For: {len(leftover)} token(s) did not fill a triple")
        bullets.append("- " + " - ".join(leftover))
    return bullets


def _strip_pipes(line: str) -> str:
    if "|" not in line:
        return line
    return _PIPES.sub(" ", line).strip()


def _fix_heading(line: str) -> str:
    return _HEADING_NO_SPACE.sub(r"\1 \2", line)


def _fix_list_marker(line: str) -> str:
    line = _BULLET_NO_SPACE.sub(r"\1\2 \3", line)
    line = _STAR_BULLET_NO_SPACE.sub(r"\1* \2", line)
    return _NUMBERED_NO_SPACE.sub(r"\1\2 \3", line)


def _space_headings(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if _HEADING.match(line) and out and out[-1].strip():
            out.append("")
        out.append(line)
    return out
