"""Personal task tracker with a single-active-task focus session timer."""

__version__ = "0.1.0"
