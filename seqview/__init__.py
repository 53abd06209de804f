"""seqview: explore large sequence diagrams by filter, window, page and search."""

__version__ = "0.1.0"
