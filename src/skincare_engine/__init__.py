"""
Skincare needs engine

Signals (photo metadata + yes/no answers) -> prioritized needs -> catalog
recommendations -> monthly / weekly routines with check-in progress.
"""

__version__ = "0.1.0"
