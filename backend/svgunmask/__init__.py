"""svg-unmask: autoregressive layer peeling for SVG images."""

__version__ = "0.1.0"
