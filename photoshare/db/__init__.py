from .base import Base
from .models import photo, tag, user
from . import events

__all__ = ["Base", "photo", "tag", "user", "events"]
