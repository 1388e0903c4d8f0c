"""Release orchestration for the grim desktop application."""

__version__ = "0.1.0"
