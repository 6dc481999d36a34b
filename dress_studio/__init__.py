"""Dress Studio: sketch-to-design variations, virtual try-on and tailor orders."""

__version__ = "1.0.0"
