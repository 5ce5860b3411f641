"""
Name: Prompt Fragmenter

Responsibilities:
  - Split a long prompt into ordered, typed fragments under a token budget
  - Semantic mode: detect section markers (STEP:/CONTEXT:/DATA: and their
    French forms) and pack sections greedily
  - Simple mode: pack blank-line separated paragraphs greedily
  - Prefix follow-up fragments with a header naming the previous fragments

Collaborators:
  - domain.entities: Fragment, FragmentType, Priority, estimate_tokens

Constraints:
  - Token counts are estimated (ceil(len / 4)), not tokenized
  - Never truncates: a single section/paragraph larger than the budget is
    emitted whole
  - Never raises for any input string

Algorithm (semantic):
  - Scan lines; a marker line opens a new section of its type (priority high)
  - Untyped lines before the first marker form a "general" section
  - Sections join the current fragment while the type is unchanged and the
    estimate (header included) stays within budget
  - The context header is left out of a fragment it would push over budget;
    dependencies are still listed
  - Each fragment keeps the type of its sections, so only the first
    fragment can be "general"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ...domain.entities import Fragment, FragmentType, Priority, estimate_tokens

DEFAULT_MAX_TOKENS_PER_FRAGMENT = 2048
MODES = ("semantic", "simple")

# R: Marker prefixes (case-sensitive, matched after trim) and their section type
SECTION_MARKERS: Tuple[Tuple[Tuple[str, ...], FragmentType], ...] = (
    (("ÉTAPE:", "STEP:"), FragmentType.STEP),
    (("CONTEXTE:", "CONTEXT:"), FragmentType.CONTEXT),
    (("DONNÉES:", "DATA:"), FragmentType.DATA),
)

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SECTION_JOINER = "\n\n"


@dataclass
class Section:
    """A run of lines opened by a marker (or the untyped preamble)."""

    type: FragmentType
    priority: Priority
    lines: List[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        lines = list(self.lines)
        while lines and not lines[0].strip():
            lines.pop(0)
        while lines and not lines[-1].strip():
            lines.pop()
        return "\n".join(lines)

    @property
    def is_blank(self) -> bool:
        return not any(line.strip() for line in self.lines)


@dataclass
class _Group:
    type: FragmentType
    priority: Priority
    parts: List[str] = field(default_factory=list)

    @property
    def body(self) -> str:
        return _SECTION_JOINER.join(self.parts)


def detect_marker(line: str) -> Optional[FragmentType]:
    """R: Return the section type a line opens, or None for ordinary lines."""
    stripped = line.strip()
    for prefixes, fragment_type in SECTION_MARKERS:
        if stripped.startswith(prefixes):
            return fragment_type
    return None


def detect_sections(text: str) -> List[Section]:
    """
    R: Split text into marker-delimited sections, in input order.

    Blank-only sections are dropped.
    """
    sections: List[Section] = []
    current = Section(type=FragmentType.GENERAL, priority=Priority.NORMAL)

    for line in text.split("\n"):
        marker = detect_marker(line)
        if marker is None:
            current.lines.append(line)
            continue
        if not current.is_blank:
            sections.append(current)
        current = Section(type=marker, priority=Priority.HIGH, lines=[line])

    if not current.is_blank:
        sections.append(current)

    return sections


def build_fragment_context(previous: Sequence[FragmentType], current: FragmentType) -> str:
    """R: Header telling the model which fragments came before this one."""
    if not previous:
        return ""
    listing = "\n".join(
        f"Fragment {i + 1}: {fragment_type.value}"
        for i, fragment_type in enumerate(previous)
    )
    return (
        "CONTEXT FROM PREVIOUS FRAGMENTS:\n"
        f"{listing}\n\n"
        f"CURRENT SECTION: {current.value}\n\n"
    )


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def semantic_fragmentation(text: str, max_tokens: int) -> List[Fragment]:
    text = _normalize(text)
    sections = detect_sections(text)
    if not sections:
        return [Fragment(content=text, type=FragmentType.GENERAL)]

    groups: List[_Group] = []
    current: Optional[_Group] = None

    for section in sections:
        if current is not None:
            header = build_fragment_context([g.type for g in groups], current.type)
            candidate = _SECTION_JOINER.join(current.parts + [section.content])
            too_big = estimate_tokens(header + candidate) > max_tokens
            if section.type != current.type or too_big:
                groups.append(current)
                current = None
        if current is None:
            current = _Group(type=section.type, priority=section.priority)
        current.parts.append(section.content)

    if current is not None:
        groups.append(current)

    fragments: List[Fragment] = []
    for i, group in enumerate(groups):
        header = build_fragment_context([f.type for f in fragments], group.type)
        # R: A lone section that fits only without its header goes out bare
        if estimate_tokens(header + group.body) > max_tokens:
            header = ""
        fragments.append(
            Fragment(
                content=header + group.body,
                type=group.type,
                priority=group.priority,
                dependencies=tuple(f.fragment_id for f in fragments),
                index=i,
            )
        )

    return fragments


def simple_fragmentation(text: str, max_tokens: int) -> List[Fragment]:
    text = _normalize(text)
    paragraphs = [
        para.strip("\n") for para in PARAGRAPH_BREAK.split(text) if para.strip()
    ]
    if not paragraphs:
        return [Fragment(content=text, type=FragmentType.CHUNK)]

    chunks: List[str] = []
    current = ""
    for para in paragraphs:
        candidate = f"{current}{_SECTION_JOINER}{para}" if current else para
        if current and estimate_tokens(candidate) > max_tokens:
            chunks.append(current)
            current = para
        else:
            current = candidate
    if current:
        chunks.append(current)

    return [
        Fragment(content=chunk, type=FragmentType.CHUNK, priority=Priority.NORMAL, index=i)
        for i, chunk in enumerate(chunks)
    ]


def _option(options: Mapping[str, Any], key: str, default: Any) -> Any:
    value = options.get(key)
    return default if value is None else value


@dataclass(frozen=True)
class FragmenterConfig:
    """
    R: Fragmentation options.

    Attributes:
        mode: "semantic" (section markers) or "simple" (paragraphs)
        max_tokens_per_fragment: Estimated token budget per fragment
    """

    mode: str = "semantic"
    max_tokens_per_fragment: int = DEFAULT_MAX_TOKENS_PER_FRAGMENT

    def __post_init__(self):
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {self.mode!r}")
        if self.max_tokens_per_fragment <= 0:
            raise ValueError(
                f"max_tokens_per_fragment must be > 0, got {self.max_tokens_per_fragment}"
            )

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]]) -> "FragmenterConfig":
        options = options or {}
        return cls(
            mode=_option(options, "mode", "semantic"),
            max_tokens_per_fragment=_option(
                options, "max_tokens_per_fragment", DEFAULT_MAX_TOKENS_PER_FRAGMENT
            ),
        )


class Fragmenter:
    """
    R: Default fragmenter; validates its configuration on creation to fail fast.
    """

    def __init__(self, config: FragmenterConfig | None = None):
        self.config = config or FragmenterConfig()

    def fragment(self, text: str) -> List[Fragment]:
        """
        R: Split text into fragments.

        Returns:
            Ordered fragments; empty list only for an empty string
        """
        if not text:
            return []
        if self.config.mode == "simple":
            return simple_fragmentation(text, self.config.max_tokens_per_fragment)
        return semantic_fragmentation(text, self.config.max_tokens_per_fragment)


def fragment_text(
    text: str, config: FragmenterConfig | Mapping[str, Any] | None = None
) -> List[Fragment]:
    """
    R: Public entry point: fragment text with the given options.

    Examples:
        >>> [f.type.value for f in fragment_text("CONTEXT: a\\nSTEP: b")]
        ['context', 'step']
    """
    if not isinstance(config, FragmenterConfig):
        config = FragmenterConfig.from_mapping(config)
    return Fragmenter(config).fragment(text)
