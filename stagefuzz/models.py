"""
stagefuzz.models — Identity model
=================================

Two equalities live side by side on every value:

    IDENTITY   — the integer id.  Decides whether an entity in the source
                 and an entity in the target are "the same thing".
    CONTENT    — the is_updated flag.  Decides whether two entities with
                 the same identity are unchanged or updated.

They are deliberately decoupled:

    Element(3, False)  vs  Element(3, True)   → same identity, UPDATE
    Element(3, False)  vs  Element(4, False)  → different identity,
                                                DELETE + INSERT

A Section is a composite: a header Element (its own identity/content)
plus an ordered tuple of Elements.  A Collection is an ordered tuple of
Sections.  All three are frozen: a new state is always a new object.

Python `==` is full structural equality (identity AND content, in order),
which is what the round-trip checks compare.
"""

from dataclasses import dataclass, replace
from typing import Iterator

from .errors import DuplicateIdentifierError


@dataclass(frozen=True, slots=True)
class Element:
    """
    A leaf entity.

    Examples:
        Element(0)
        Element(7, True)
    """
    id: int
    is_updated: bool = False

    @property
    def identity(self) -> int:
        return self.id

    def has_same_identity(self, other: "Element") -> bool:
        return self.id == other.id

    def is_content_equal(self, other: "Element") -> bool:
        """Content comparison: the flag only, never the id."""
        return self.is_updated == other.is_updated

    def toggled(self) -> "Element":
        return Element(self.id, not self.is_updated)

    def __repr__(self) -> str:
        return f"Element({self.id}{'+' if self.is_updated else ''})"


@dataclass(frozen=True, slots=True)
class Section:
    """A header Element plus its ordered elements."""
    model: Element
    elements: tuple[Element, ...] = ()

    @property
    def id(self) -> int:
        return self.model.id

    @property
    def identity(self) -> int:
        return self.model.id

    def has_same_identity(self, other: "Section") -> bool:
        return self.model.has_same_identity(other.model)

    def is_content_equal(self, other: "Section") -> bool:
        """Header content only; element changes are diffed separately."""
        return self.model.is_content_equal(other.model)

    def element_ids(self) -> list[int]:
        return [e.id for e in self.elements]

    def with_elements(self, elements) -> "Section":
        return replace(self, elements=tuple(elements))

    def with_model(self, model: Element) -> "Section":
        return replace(self, model=model)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Element]:
        return iter(self.elements)

    def __repr__(self) -> str:
        if len(self.elements) <= 5:
            return f"Section({self.model!r}, {list(self.elements)})"
        return f"Section({self.model!r}, [...] len={len(self.elements)})"


@dataclass(frozen=True, slots=True)
class Collection:
    """An ordered sequence of Sections; the authoritative state."""
    sections: tuple[Section, ...] = ()

    def section_ids(self) -> list[int]:
        return [s.model.id for s in self.sections]

    def element_count(self) -> int:
        return sum(len(s.elements) for s in self.sections)

    def validate(self, label: str = "collection") -> "Collection":
        ensure_unique(self, label)
        return self

    def __len__(self) -> int:
        return len(self.sections)

    def __iter__(self) -> Iterator[Section]:
        return iter(self.sections)

    def __getitem__(self, index: int) -> Section:
        return self.sections[index]

    def __bool__(self) -> bool:
        return bool(self.sections)

    def __repr__(self) -> str:
        return f"Collection({len(self.sections)} sections, {self.element_count()} elements)"


def ensure_unique(collection: Collection, label: str = "collection") -> None:
    """
    Check the structural invariants:
        • section ids pairwise distinct within the collection
        • element ids pairwise distinct within each section

    Raises DuplicateIdentifierError naming the first offender.
    """
    seen_sections: set[int] = set()
    for section in collection.sections:
        if section.model.id in seen_sections:
            raise DuplicateIdentifierError("section", section.model.id, label=label)
        seen_sections.add(section.model.id)

        seen_elements: set[int] = set()
        for element in section.elements:
            if element.id in seen_elements:
                raise DuplicateIdentifierError(
                    "element", element.id, section=section.model.id, label=label
                )
            seen_elements.add(element.id)
