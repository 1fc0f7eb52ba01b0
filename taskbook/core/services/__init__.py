"""Core service layer modules."""

from .auth import AuthService
from .tasks import TaskService
from .views import ViewService

__all__ = ["AuthService", "TaskService", "ViewService"]
