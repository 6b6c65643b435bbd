# This project was developed with assistance from AI tools.
"""Scope path value type.

A scope path is the ordered chain of container ids (broadest first) that
bounds a principal's authority or locates a resource. "Is ancestor of"
becomes a prefix check on the tuple. In the database the path is stored as
``/a/b/c/`` so the same check is a ``LIKE '/a/b/%'`` prefix match.
"""

from dataclasses import dataclass

SEPARATOR = "/"


class InvalidScopeSegment(ValueError):
    """Raised when a scope id cannot be embedded in an encoded path."""


@dataclass(frozen=True)
class ScopePath:
    segments: tuple[str, ...] = ()

    def __post_init__(self):
        for segment in self.segments:
            if not segment or SEPARATOR in segment:
                raise InvalidScopeSegment(f"Invalid scope id: {segment!r}")

    @classmethod
    def root(cls) -> "ScopePath":
        return cls(())

    @classmethod
    def of(cls, *segments: str) -> "ScopePath":
        return cls(tuple(segments))

    @classmethod
    def decode(cls, encoded: str | None) -> "ScopePath":
        """Parse the ``/a/b/`` storage form; ``None`` and ``/`` are the root."""
        if not encoded:
            return cls.root()
        return cls(tuple(s for s in encoded.split(SEPARATOR) if s))

    def encode(self) -> str:
        if not self.segments:
            return SEPARATOR
        return SEPARATOR + SEPARATOR.join(self.segments) + SEPARATOR

    @property
    def is_root(self) -> bool:
        return not self.segments

    @property
    def leaf(self) -> str | None:
        return self.segments[-1] if self.segments else None

    def child(self, segment: str) -> "ScopePath":
        return ScopePath(self.segments + (segment,))

    def covers(self, other: "ScopePath") -> bool:
        """True when ``self`` is a prefix of (or equal to) ``other``."""
        return other.segments[: len(self.segments)] == self.segments

    def contains(self, segment: str) -> bool:
        return segment in self.segments

    @property
    def depth(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return self.encode()
