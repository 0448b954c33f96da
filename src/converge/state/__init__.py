"""State store - last-known-good representation of managed objects."""

from .models import ResourceState, ResourceStatus, StateDocument
from .store import StateStore

__all__ = ["ResourceState", "ResourceStatus", "StateDocument", "StateStore"]
