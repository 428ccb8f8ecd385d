"""Exception taxonomy shared by the parser, the engine and the entry points."""

from __future__ import annotations


class UnmaskError(Exception):
    """Base class for all svg-unmask errors."""


class SvgParseError(UnmaskError):
    """Markup could not be parsed or has no <svg> root."""


class CircularOcclusionError(UnmaskError):
    """The occlusion relation contains a cycle, so no removal order exists."""

    def __init__(self, element_id: str) -> None:
        super().__init__(f"Circular dependency detected in layer graph at {element_id!r}")
        self.element_id = element_id


class DetachError(UnmaskError):
    """A single element could not be removed from the working tree."""


class NotLoadedError(UnmaskError):
    """An orchestration call was made before an SVG was loaded."""
