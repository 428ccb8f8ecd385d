"""Render the working tree back to SVG markup."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from svgunmask.svg.tree import WorkingTree


def serialize_tree(tree: WorkingTree) -> str:
    """Current state of the working tree as an SVG string (no XML declaration)."""
    return ET.tostring(tree.root, encoding="unicode")
