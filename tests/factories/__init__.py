"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import ProjectFactory, ModelVersionFactory, ...
"""

from tests.factories.base import BaseFactory, utc_now
from tests.factories.project import ModelVersionFactory, ProjectFactory, ViewerTokenFactory

__all__ = [
    # Base
    "BaseFactory",
    "utc_now",
    # Models
    "ProjectFactory",
    "ModelVersionFactory",
    "ViewerTokenFactory",
]
