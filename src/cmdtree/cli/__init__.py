"""CLI layer: application engine, console output and the interactive session.

This package is the outermost layer.  It may import from ``core`` and
``builtins``; nothing in ``core`` imports from ``cli``.
"""
