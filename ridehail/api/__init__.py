# ridehail/api/__init__.py
from . import rating

__all__ = ["rating"]
