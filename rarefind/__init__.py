"""Provider-agnostic access to third-party marketplace listings."""

__version__ = "0.1.0"
