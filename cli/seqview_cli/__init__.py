"""seqview CLI — interactive explorer for sequence diagram sources."""

__version__ = "0.1.0"
