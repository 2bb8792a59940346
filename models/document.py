"""
Ordered collection of design elements.

List order is z-order: index 0 is drawn first (bottom). The document does
no validation beyond id uniqueness; quality rules live in modules.preflight.
"""

from __future__ import annotations

import uuid
from typing import Dict, Any, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

from .elements import DesignElement, element_from_dict

E = TypeVar("E", bound=DesignElement)


class DesignDocument:
    """
    Mutable builder for a design; hand ``snapshot()`` to renderers.

    The host owns the document. Export and preflight calls receive an
    immutable tuple of elements, so edits made while a call is running can
    not reach it.
    """

    def __init__(self, elements: Optional[Iterable[DesignElement]] = None):
        self._elements: List[DesignElement] = []
        for element in elements or ():
            self.add(element)

    @classmethod
    def from_dicts(cls, items: Iterable[Dict[str, Any]]) -> "DesignDocument":
        """Build a document from the editor's JSON element list."""
        return cls(element_from_dict(item) for item in items)

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[DesignElement]:
        return iter(tuple(self._elements))

    def add(self, element: DesignElement) -> DesignElement:
        """
        Append an element on top of the stack.

        An element without an id gets a generated one (``text-1a2b3c4d``).

        Returns:
            The element as stored (possibly with its new id)

        Raises:
            ValueError: If another element already uses the id
        """
        if not element.id:
            element = element.with_id(self._generate_id(element))
        elif self.get(element.id) is not None:
            raise ValueError(f"Duplicate element id: {element.id}")

        self._elements.append(element)
        return element

    def remove(self, element_id: str) -> None:
        """Remove an element by id; unknown ids are ignored."""
        self._elements = [e for e in self._elements if e.id != element_id]

    def get(self, element_id: str) -> Optional[DesignElement]:
        for element in self._elements:
            if element.id == element_id:
                return element
        return None

    def of_type(self, element_class: Type[E]) -> Iterator[E]:
        """Iterate over one element variant, preserving z-order."""
        for element in tuple(self._elements):
            if isinstance(element, element_class):
                yield element

    def snapshot(self) -> Tuple[DesignElement, ...]:
        return tuple(self._elements)

    def _generate_id(self, element: DesignElement) -> str:
        while True:
            candidate = f"{element.kind.value}-{uuid.uuid4().hex[:8]}"
            if self.get(candidate) is None:
                return candidate
