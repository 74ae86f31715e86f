"""
Typed view over the parent_tree attached to Media Manager asset responses.

An asset's ancestry comes back as nested nodes keyed by container type:

    {"type": "episode",
     "attributes": {"slug": "parent-a",
                    "season": {"type": "season",
                               "attributes": {"show": {"type": "show",
                                                       "attributes": {"slug": "show-a"}}}}}}

ParentNode parses that shape once and answers "is there an ancestor of this
type with this slug, at any depth?".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ContainerType(str, Enum):
    """Container kinds that may appear as children inside a parent tree node."""

    EPISODE = "episode"
    SEASON = "season"
    SPECIAL = "special"
    SHOW = "show"


@dataclass
class ParentNode:
    type: str
    slug: Optional[str]
    children: dict[ContainerType, "ParentNode"] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["ParentNode"]:
        """
        Build a node from a raw parent tree fragment.

        Returns None when the fragment lacks a type or its attributes; such
        fragments can never match anything.
        """
        if not isinstance(payload, dict):
            return None

        node_type = payload.get("type")
        attributes = payload.get("attributes")
        if node_type is None or not isinstance(attributes, dict):
            return None

        children = {}
        for container in ContainerType:
            child = cls.from_payload(attributes.get(container.value))
            if child is not None:
                children[container] = child

        return cls(type=node_type, slug=attributes.get("slug"), children=children)

    def matches(self, container_type: str, slug: str) -> bool:
        return self.type == container_type and self.slug is not None and self.slug == slug

    def contains(self, container_type: str, slug: str) -> bool:
        """True if this node or any descendant has the given type and slug."""
        if self.matches(container_type, slug):
            return True
        return any(
            child.contains(container_type, slug) for child in self.children.values()
        )


def has_parent_in_tree(parent_tree: Any, container_type: str, slug: str) -> bool:
    node = ParentNode.from_payload(parent_tree)
    return node is not None and node.contains(container_type, slug)
