"""gitp: switch between git identity profiles."""

__version__ = "0.1.0"
