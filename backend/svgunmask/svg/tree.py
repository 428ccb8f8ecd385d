"""Mutable working tree: the live SVG DOM that peeling detaches nodes from.

Nodes are addressed by element id. Parent links live in a lookup table
instead of on the nodes, since ElementTree has no parent pointers.
"""

from __future__ import annotations

import copy
import xml.etree.ElementTree as ET

from svgunmask.errors import DetachError

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

# Serialize SVG-namespace tags without ns0: prefixes
ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)


def local_name(tag: object) -> str:
    """Tag name without its {namespace}; "" for comments and processing instructions."""
    if not isinstance(tag, str):
        return ""
    return tag.split("}")[-1] if "}" in tag else tag


def _clone(root: ET.Element, nodes: dict[str, ET.Element]) -> tuple[ET.Element, dict[str, ET.Element]]:
    clone = copy.deepcopy(root)
    mapping = dict(zip(root.iter(), clone.iter()))
    return clone, {eid: mapping[node] for eid, node in nodes.items()}


class WorkingTree:
    def __init__(self, root: ET.Element, nodes: dict[str, ET.Element]) -> None:
        self._pristine, self._pristine_nodes = _clone(root, nodes)
        self._install(root, nodes)

    def _install(self, root: ET.Element, nodes: dict[str, ET.Element]) -> None:
        self.root = root
        self._nodes = dict(nodes)
        self._parents = {child: parent for parent in root.iter() for child in parent}

    def is_attached(self, element_id: str) -> bool:
        """True while the node is still reachable from the root."""
        node = self._nodes.get(element_id)
        while node is not None and node is not self.root:
            node = self._parents.get(node)
        return node is self.root

    def detach(self, element_id: str) -> None:
        node = self._nodes.get(element_id)
        if node is None:
            raise DetachError(f"Unknown element {element_id!r}")
        parent = self._parents.get(node)
        if parent is None:
            raise DetachError(f"Element {element_id!r} is already detached")
        parent.remove(node)
        del self._parents[node]

    def restore(self) -> None:
        """Return to the tree as it was parsed, before any detach."""
        root, nodes = _clone(self._pristine, self._pristine_nodes)
        self._install(root, nodes)
