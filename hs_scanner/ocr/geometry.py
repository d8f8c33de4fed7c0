"""Geometry primitives for recognized pages.

A page is what the OCR engine hands over for one frame: text lines with
optional axis-aligned boxes, grouped into blocks, plus the concatenated
raw text.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle in a frame's pixel space."""

    left: int
    top: int
    right: int
    bottom: int

    def __post_init__(self) -> None:
        if self.left > self.right or self.top > self.bottom:
            raise ValueError(
                f"Invalid box ({self.left}, {self.top}, {self.right}, {self.bottom})"
            )

    def intersects(self, other: "Box") -> bool:
        """Return True if both projections overlap (touching edges do not count)."""
        return (
            self.left < other.right
            and other.left < self.right
            and self.top < other.bottom
            and other.top < self.bottom
        )

    def union(self, other: "Box") -> "Box":
        """Return the smallest box enclosing both boxes."""
        return Box(
            min(self.left, other.left),
            min(self.top, other.top),
            max(self.right, other.right),
            max(self.bottom, other.bottom),
        )


@dataclass(frozen=True)
class Line:
    """A recognized text line. Lines without a box are text-only."""

    text: str
    box: Box | None = None


@dataclass
class Block:
    """A group of lines the OCR engine reported together."""

    lines: list[Line] = field(default_factory=list)


@dataclass
class Page:
    """All lines recognized in one frame, in OCR-reported order.

    Args:
        blocks: Line groups as reported by the engine.
        raw_text: Concatenated text. Derived from the lines when omitted.
    """

    blocks: list[Block] = field(default_factory=list)
    raw_text: str | None = None

    def __post_init__(self) -> None:
        if self.raw_text is None:
            self.raw_text = "\n".join(line.text for line in self.lines)

    @classmethod
    def from_lines(cls, lines: Iterable[Line], raw_text: str | None = None) -> "Page":
        """Build a single-block page from a flat sequence of lines."""
        return cls(blocks=[Block(lines=list(lines))], raw_text=raw_text)

    @classmethod
    def from_text(cls, text: str) -> "Page":
        """Build a geometry-free page from plain text."""
        lines = [Line(text=t) for t in text.splitlines()]
        return cls(blocks=[Block(lines=lines)], raw_text=text)

    def iter_lines(self) -> Iterator[Line]:
        for block in self.blocks:
            yield from block.lines

    @property
    def lines(self) -> list[Line]:
        return list(self.iter_lines())

    @property
    def boxed_lines(self) -> list[Line]:
        """Lines usable for geometric search, in reading order (top, then left)."""
        boxed = [line for line in self.iter_lines() if line.box is not None]
        return sorted(boxed, key=lambda line: (line.box.top, line.box.left))

    @property
    def has_geometry(self) -> bool:
        return any(line.box is not None for line in self.iter_lines())
