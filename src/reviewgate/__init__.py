"""Review gate: static checks, AI review and approval policy for source files."""

__version__ = "0.1.0"
