"""Natural-language requirements to sanitized cloud architecture graphs."""

__version__ = "0.1.0"
