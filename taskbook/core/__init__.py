"""Application logic layer.

Import the engine from ``taskbook.core.engine``; this package stays light so
that models can depend on ``taskbook.core.dates`` without import cycles.
"""
