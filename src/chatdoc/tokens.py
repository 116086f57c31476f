"""
Inline token extraction.

Three token kinds live inside message and card bodies:

    > [search]: [budget report]     action, on a line of its own
    [[notes/budget.md]]             reference, anywhere in the text
    {timestamp: 1700000000000}      inline timestamp, first one wins

Extraction is a pure function of the text. A token that does not fully
match its pattern is not extracted and the text is left alone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .dom import ACTION_KINDS, Action, Reference, infer_reference_kind

# '> [kind]: [value]' on its own line; value runs to the last ']' of the line
ACTION_PATTERN = re.compile(r"^[ \t]*>[ \t]*\[([A-Za-z]+)\][ \t]*:[ \t]*\[(.*)\][ \t]*$", re.MULTILINE)

# '[[path]]' with no brackets or newlines inside
REFERENCE_PATTERN = re.compile(r"\[\[([^\[\]\n]+)\]\]")

TIMESTAMP_PATTERN = re.compile(r"\{timestamp:[ \t]*(-?\d+)[ \t]*\}")

_CANONICAL_ACTION_KINDS = {kind.lower(): kind for kind in ACTION_KINDS}


@dataclass
class Tokens:
    """Everything extracted from one block of text."""
    actions: list[Action] = field(default_factory=list)
    references: list[Reference] = field(default_factory=list)
    timestamp: int | None = None


def extract_actions(text: str) -> list[Action]:
    """Actions in appearance order. Unknown kinds are not actions."""
    actions = []
    for match in ACTION_PATTERN.finditer(text):
        kind = _CANONICAL_ACTION_KINDS.get(match.group(1).lower())
        if kind is None:
            continue
        actions.append(Action(kind=kind, params={"value": match.group(2).strip()}))
    return actions


def extract_references(text: str) -> list[Reference]:
    """One Reference per [[path]] occurrence, duplicates included."""
    references = []
    for match in REFERENCE_PATTERN.finditer(text):
        path = match.group(1).strip()
        if path:
            references.append(Reference(path=path, kind=infer_reference_kind(path)))
    return references


def extract_timestamp(text: str) -> int | None:
    match = TIMESTAMP_PATTERN.search(text)
    if match:
        return int(match.group(1))
    return None


def extract(text: str) -> Tokens:
    return Tokens(
        actions=extract_actions(text),
        references=extract_references(text),
        timestamp=extract_timestamp(text),
    )
