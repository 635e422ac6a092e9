"""Schema-driven console for browsing and editing relational tables."""

__version__ = "0.1.0"
