"""API Routes"""

from . import folders, keywords, projects

__all__ = ["folders", "keywords", "projects"]
