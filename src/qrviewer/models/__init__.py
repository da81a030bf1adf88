"""Model exports.

Import from here: `from src.qrviewer.models import Project, ViewerToken`
"""

from src.qrviewer.models.base import utc_now
from src.qrviewer.models.project import ModelVersion, Project
from src.qrviewer.models.token import TokenView, ViewerToken

__all__ = [
    "ModelVersion",
    "Project",
    "TokenView",
    "ViewerToken",
    "utc_now",
]
