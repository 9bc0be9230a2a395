"""
Gate evaluation.

Decides from the effective configuration and the federation topology whether
synchronization runs at all, and which sub-flows are active. Rules are checked
top to bottom and the first match wins.
"""

import logging
from typing import Callable, List, Optional, Tuple

from ..models.config import EffectiveConfig, FederationTopology
from ..models.results import SyncPlan

logger = logging.getLogger(__name__)

REASON_INVALID_URLS = "invalid manifest URLs"
REASON_BOTH_DISABLED = "both features turned off"
REASON_NAME_MISSING = "federation name missing"

DisableRule = Tuple[str, Callable[[EffectiveConfig, Optional[FederationTopology]], bool]]

DISABLE_RULES: List[DisableRule] = [
    (REASON_INVALID_URLS, lambda config, topology: not config.manifest_urls_valid),
    (
        REASON_BOTH_DISABLED,
        lambda config, topology: config.disable_type_compilation and config.disable_type_download,
    ),
    (REASON_NAME_MISSING, lambda config, topology: topology is None or not topology.has_name),
]


def evaluate(config: EffectiveConfig, topology: Optional[FederationTopology]) -> SyncPlan:
    """
    Evaluate the gate for one controller run.

    Args:
        config: Resolved configuration
        topology: Federation topology, None when no federation plugin was found

    Returns:
        SyncPlan with the active sub-flows, or the reason nothing runs
    """
    for reason, matches in DISABLE_RULES:
        if matches(config, topology):
            logger.debug(f"Gate closed: {reason}")
            return SyncPlan.disabled(reason)

    return SyncPlan(
        run_download=topology.has_remotes and not config.disable_type_download,
        run_compile=topology.has_exposes and not config.disable_type_compilation,
    )
