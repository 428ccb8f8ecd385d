"""Shared test fixtures."""

from __future__ import annotations

import pytest

from svgunmask.engine.elements import Element
from svgunmask.utils.geometry import BBox


# Two overlapping rects: b is painted later and covers a's lower-right quarter
OVERLAP_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">
  <rect id="a" x="0" y="0" width="100" height="100" fill="#ff0000"/>
  <rect id="b" x="50" y="50" width="100" height="100" fill="#0000ff"/>
</svg>'''

# Pairwise disjoint, far apart, dissimilar fills
DISJOINT_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">
  <rect id="r1" x="0" y="0" width="20" height="20" fill="#ff0000"/>
  <rect id="r2" x="100" y="0" width="20" height="20" fill="#00ff00"/>
  <rect id="r3" x="0" y="100" width="20" height="20" fill="#0000ff"/>
</svg>'''

# Background, a shape on it and a label on the shape
STACKED_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">
  <rect id="background" x="0" y="0" width="200" height="200" fill="#ffffff"/>
  <circle id="sun" cx="100" cy="100" r="40" fill="#ffcc00"/>
  <text id="label" x="80" y="105" font-size="12" fill="#000000">Hi</text>
</svg>'''

# Two close same-colored dots over a background: one semantic group on top
CLUSTER_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 300">
  <rect id="base" x="0" y="0" width="300" height="300" fill="#eeeeee"/>
  <circle id="dot1" cx="250" cy="250" r="5" fill="#ff0000"/>
  <circle id="dot2" cx="270" cy="250" r="5" fill="#ff0000"/>
</svg>'''

# Six disjoint basic shapes with mutually dissimilar fills
SIX_SHAPES_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 300">
  <rect id="s1" x="0" y="0" width="20" height="20" fill="#ff0000"/>
  <rect id="s2" x="100" y="0" width="20" height="20" fill="#00ff00"/>
  <rect id="s3" x="200" y="0" width="20" height="20" fill="#0000ff"/>
  <circle id="s4" cx="10" cy="110" r="10" fill="#000000"/>
  <circle id="s5" cx="110" cy="110" r="10" fill="#ffffff"/>
  <circle id="s6" cx="210" cy="110" r="10" fill="#ff00ff"/>
</svg>'''

# Grouped badge with inherited fill, unlabeled nodes and non-rendered content
GROUPED_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" width="120" height="80">
  <defs>
    <rect id="template" x="0" y="0" width="500" height="500"/>
  </defs>
  <title>Badge</title>
  <rect x="0" y="0" width="120" height="80" style="fill:#336699;opacity:0.5"/>
  <g id="badge" fill="#ffcc00">
    <circle id="badge-dot" cx="20" cy="20" r="10"/>
    <path id="badge-mark" d="M 10 50 L 60 50 L 60 70 Z"/>
  </g>
  <line x1="0" y1="40" x2="120" y2="40" stroke="#000000"/>
</svg>'''

EMPTY_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"></svg>'


def make_element(
    element_id: str,
    x: float,
    y: float,
    width: float,
    height: float,
    z_index: int,
    tag_name: str = "rect",
    fill: str = "#000000",
    **kwargs,
) -> Element:
    return Element(
        id=element_id,
        tag_name=tag_name,
        bbox=BBox(x, y, width, height),
        z_index=z_index,
        fill=fill,
        **kwargs,
    )


@pytest.fixture
def overlap_svg() -> str:
    return OVERLAP_SVG


@pytest.fixture
def stacked_svg() -> str:
    return STACKED_SVG


@pytest.fixture
def cluster_svg() -> str:
    return CLUSTER_SVG


@pytest.fixture
def six_shapes_svg() -> str:
    return SIX_SHAPES_SVG
