"""Refresh recorded state from the remote control plane."""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict
from ..lifecycle.context import ProviderContext
from ..lifecycle.executor import LifecycleExecutor, OperationResult
from ..lifecycle.registry import get_adapter
from ..state.models import ResourceState
from ..state.store import StateStore
from ..utils.logging import get_logger
from .applier import DEFAULT_MAX_WORKERS

logger = get_logger("workflow.refresh")


def refresh_state(
    store: StateStore,
    context: ProviderContext,
    max_workers: int = DEFAULT_MAX_WORKERS
) -> Dict[str, OperationResult]:
    """
    Read every managed object and record what the remote system reports.

    Objects the remote system no longer has are removed from state. State
    is saved even when a read fails.

    Returns:
        Read result per address

    Raises:
        ConvergeError: The first read failure
    """
    states = store.list()
    if not states:
        return {}

    def read_one(state: ResourceState) -> OperationResult:
        executor = LifecycleExecutor(get_adapter(state.resource_type), context, state, state.name)
        result = executor.read()
        store.put(result.state)
        return result

    try:
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(states)))) as pool:
            results = list(pool.map(read_one, states))
    finally:
        store.save()

    drifted = [r.address for r in results if r.drift]
    removed = [r.address for r in results if r.not_found]
    logger.info(f"Refreshed {len(results)} object(s): {len(drifted)} drifted, {len(removed)} removed")
    return {r.address: r for r in results}
