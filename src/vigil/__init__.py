"""vigil: multi-phase code quality audit pipeline."""

__version__ = "0.1.0"
