"""
Data model for the reference demo.
"""

from __future__ import annotations

from identitylab.core import Model


class User(Model):
    """A user row carrying nothing but its generated ``id``."""
