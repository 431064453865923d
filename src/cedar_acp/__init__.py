"""cedar-acp: Cedar-style authorization decisions over JSON policies and entities."""

__version__ = "0.1.0"
