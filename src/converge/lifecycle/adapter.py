"""Per-kind adapters: translate between attribute trees and remote request/response shapes."""

import copy
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from ..diff.models import ChangeSet
from ..schema.models import ResourceSchema
from .context import ProviderContext


class ResourceAdapter(ABC):
    """
    Abstract resource adapter.

    Subclasses declare ``schema`` and implement ``expand_create`` and
    ``flatten``. Everything else has a generic default.
    """

    schema: ResourceSchema
    read_after_write: bool = True

    @property
    def type_name(self) -> str:
        return self.schema.type_name

    @abstractmethod
    def expand_create(self, planned: Dict[str, Any], context: ProviderContext) -> Dict[str, Any]:
        """Build the create request from planned attributes."""
        pass

    def expand_update(self, change_set: ChangeSet, context: ProviderContext) -> Optional[Dict[str, Any]]:
        """
        Build the update request.

        Returns:
            Request body, or None when the change is state-only and needs no remote call
        """
        names = {re.split(r"[.\[]", change.path, maxsplit=1)[0] for change in change_set.changed}
        if not names:
            return None
        return {name: change_set.planned.get(name) for name in sorted(names)}

    def post_create(self, planned: Dict[str, Any], identity: str, context: ProviderContext) -> Dict[str, Any]:
        """Fill values the remote system assigns at creation that are known without a read."""
        attributes = copy.deepcopy(planned)
        attributes[self.schema.identity_attribute] = identity
        return attributes

    @abstractmethod
    def flatten(
        self,
        identity: str,
        response: Dict[str, Any],
        prior: Dict[str, Any],
        context: ProviderContext
    ) -> Dict[str, Any]:
        """
        Decode a read response into attributes.

        Args:
            identity: Remote identity of the object
            response: Raw read response
            prior: Attributes before the read (source of values reads never return)
            context: Provider context

        Returns:
            Complete attribute tree
        """
        pass
