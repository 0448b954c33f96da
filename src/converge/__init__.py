"""converge - Declarative resource reconciliation engine."""

from typing import Dict, Optional
from .config import load_engine_config
from .ingest.config_loader import load_config_document
from .lifecycle.client import ControlPlaneClient
from .lifecycle.context import CancellationToken, ProviderContext
from .state.store import StateStore
from .workflow.applier import ApplyResult, apply_plan
from .workflow.planner import Plan, build_plan
from .workflow.refresh import refresh_state
from .utils.logging import setup_logging, get_logger
from .utils.errors import ConvergeError

__version__ = "0.1.0"

__all__ = ["plan", "apply", "refresh"]

setup_logging()
logger = get_logger("converge")


def _open_state(config: Dict, state_path: Optional[str]) -> StateStore:
    return StateStore.open(state_path or config["state"]["path"])


def plan(config_path: str, state_path: Optional[str] = None, engine_config_path: Optional[str] = None,
         destroy: bool = False) -> Plan:
    """Plan a configuration document against recorded state."""
    try:
        engine_config = load_engine_config(engine_config_path)
        setup_logging(engine_config["logging"]["level"])
        document = load_config_document(config_path)
        store = _open_state(engine_config, state_path)
        return build_plan(document, store, destroy=destroy)
    except ConvergeError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during plan: {e}", exc_info=True)
        raise ConvergeError(f"Plan failed: {e}") from e


def apply(config_path: str, clients: Dict[str, ControlPlaneClient], state_path: Optional[str] = None,
          engine_config_path: Optional[str] = None, destroy: bool = False,
          cancellation: Optional[CancellationToken] = None) -> ApplyResult:
    """
    Plan and apply a configuration document.

    Args:
        config_path: Resource configuration document (YAML or JSON)
        clients: Control plane client per resource type name
        state_path: State file (defaults to state.path from engine config)
        engine_config_path: Optional explicit engine config file
        destroy: Delete every managed object instead
        cancellation: Optional token to stop the run between remote calls

    Returns:
        ApplyResult with one outcome per object touched
    """
    engine_config = load_engine_config(engine_config_path)
    setup_logging(engine_config["logging"]["level"])
    document = load_config_document(config_path)
    store = _open_state(engine_config, state_path)
    context = ProviderContext.from_config(engine_config, clients, cancellation)

    current_plan = build_plan(document, store, destroy=destroy)
    return apply_plan(current_plan, document, store, context, engine_config["engine"]["max_workers"])


def refresh(clients: Dict[str, ControlPlaneClient], state_path: Optional[str] = None,
            engine_config_path: Optional[str] = None) -> StateStore:
    """Re-read every managed object and record drift in state."""
    engine_config = load_engine_config(engine_config_path)
    store = _open_state(engine_config, state_path)
    context = ProviderContext.from_config(engine_config, clients)
    refresh_state(store, context, engine_config["engine"]["max_workers"])
    return store
