"""
Workspace section strategy.

Files kept at hand for the conversation, one blank-line separated block each:

    reports/q3.pdf
    id:: ws-3f9c0a1b2d4e
    accessed:: 1700000000000
    revenue table on page 4

First line is the path, field lines follow, every other line is an excerpt.
"""

from __future__ import annotations

import re

from ..dom import (
    WORKSPACE_KINDS,
    WorkspaceMetadata,
    WorkspaceReference,
    WorkspaceSection,
    infer_workspace_kind,
)
from .base import (
    FIELD_PATTERN,
    LineEscaper,
    ParseContext,
    SectionStrategy,
    parse_int,
    registry,
    split_paragraphs,
)

WORKSPACE_FIELDS = ("id", "kind", "accessed")

WIKILINK_LINE_PATTERN = re.compile(r"^\[\[([^\[\]\n]+)\]\]$")

# path and excerpt lines that would read back as a heading, fence or field;
# entries are not fence-aware, so every fence line is escaped
LINE_ESCAPER = LineEscaper(r"(?:id|kind|accessed)::", fence_aware=False)


class WorkspaceStrategy(SectionStrategy):
    """Workspace file references."""

    @property
    def name(self) -> str:
        return "Workspace"

    @property
    def attribute(self) -> str:
        return "workspace"

    @property
    def section_type(self) -> type:
        return WorkspaceSection

    def parse(self, block: str, ctx: ParseContext) -> WorkspaceSection:
        references = [
            self._build_reference(lines, ctx)
            for lines in split_paragraphs(block)
        ]
        return WorkspaceSection(references=references)

    def _build_reference(self, lines: list[str], ctx: ParseContext) -> WorkspaceReference:
        path = LINE_ESCAPER.unescape(lines[0].strip())
        wikilink = WIKILINK_LINE_PATTERN.match(path)
        if wikilink and wikilink.group(1).strip():
            path = wikilink.group(1).strip()

        fields: dict[str, str] = {}
        excerpts: list[str] = []
        for line in lines[1:]:
            match = FIELD_PATTERN.match(line)
            if match and match.group(1) in WORKSPACE_FIELDS:
                fields[match.group(1)] = match.group(2)
            else:
                excerpts.append(LINE_ESCAPER.unescape(line))

        kind = fields.get("kind", "").lower()
        if kind not in WORKSPACE_KINDS:
            kind = infer_workspace_kind(path)

        last_accessed = parse_int(fields.get("accessed"))
        metadata = None
        if last_accessed is not None or excerpts:
            metadata = WorkspaceMetadata(last_accessed=last_accessed, excerpts=excerpts)

        return WorkspaceReference(
            id=ctx.ids.claim(fields.get("id") or None, "ws"),
            path=path,
            kind=kind,
            metadata=metadata,
        )

    def render(self, section: WorkspaceSection) -> str:
        return "\n\n".join(self.render_reference(ref) for ref in section.references)

    def render_reference(self, reference: WorkspaceReference) -> str:
        lines = [LINE_ESCAPER.escape(reference.path), f"id:: {reference.id}"]
        if reference.kind != infer_workspace_kind(reference.path):
            lines.append(f"kind:: {reference.kind}")
        if reference.metadata is not None:
            if reference.metadata.last_accessed is not None:
                lines.append(f"accessed:: {reference.metadata.last_accessed}")
            lines.extend(LINE_ESCAPER.escape(excerpt) for excerpt in reference.metadata.excerpts)
        return "\n".join(lines)


# Register the strategy
registry.register(WorkspaceStrategy())
