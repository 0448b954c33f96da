"""Plan modifiers: rules that compute a planned value for an unconfigured attribute."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List

from .paths import get_path
from .values import UNKNOWN, is_unknown


class PlanModifier(ABC):
    """
    Abstract plan modifier.

    Modifiers run only when the attribute has no configured value. They are
    resolved after every plain attribute has been planned, in dependency
    order over their ``sources``.
    """

    description: str = ""

    @property
    def sources(self) -> List[str]:
        """Root-relative paths this modifier reads from the planned tree."""
        return []

    @abstractmethod
    def plan(self, planned: Dict[str, Any], prior_value: Any) -> Any:
        """
        Compute the planned value.

        Args:
            planned: Planned value tree of the whole resource
            prior_value: Value recorded in prior state (None for new objects)

        Returns:
            Planned value, UNKNOWN, or None when the modifier has no opinion
        """
        pass


class DefaultFromSibling(PlanModifier):
    """Default derived from another attribute's planned value.

    The derived default is unknown while the source is unknown.
    """

    def __init__(self, source: str, derive: Callable[[Any], Any], description: str = ""):
        self.source = source
        self.derive = derive
        self.description = description or f"Sets default value based on {source}"

    @property
    def sources(self) -> List[str]:
        return [self.source]

    def plan(self, planned: Dict[str, Any], prior_value: Any) -> Any:
        value = get_path(planned, self.source)
        if is_unknown(value):
            return UNKNOWN
        return self.derive(value)

    def __repr__(self) -> str:
        return f"DefaultFromSibling(source={self.source!r})"
