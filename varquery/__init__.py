"""Query filtering and result payloads for annotated sequence variants."""

__version__ = "0.1.0"