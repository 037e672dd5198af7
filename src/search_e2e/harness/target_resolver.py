"""Resolve a run context into ordered, labelled run targets."""

import logging
from typing import Dict, List

from ..models.harness_models import RunTarget
from .run_context import RunContext

logger = logging.getLogger(__name__)


def resolve_targets(run_context: RunContext) -> List[RunTarget]:
    """
    Build one RunTarget per active page.

    Labels come from the browser identity recorded at provisioning time
    (``browser<index>`` when none exists). A repeated label gets an
    ``_<index>`` suffix, so two Chrome instances resolve as ``chrome`` and
    ``chrome_1``. With no page list but a single page, one target labelled
    ``browser0`` is returned. An empty list means nothing was provisioned.

    Args:
        run_context: Scenario run context

    Returns:
        Targets in page-list order
    """
    if run_context.is_multi_browser:
        targets: List[RunTarget] = []
        seen: Dict[str, int] = {}

        for index, page in enumerate(run_context.pages):
            label = _label_for(run_context, index)
            if label in seen:
                label = f"{label}_{index}"
            seen[label] = index
            targets.append(RunTarget(handle=page, label=label, index=index))

        return targets

    if run_context.page is not None:
        return [RunTarget(handle=run_context.page, label="browser0", index=0)]

    logger.debug("No pages in run context")
    return []


def _label_for(run_context: RunContext, index: int) -> str:
    if index < len(run_context.identities):
        label = run_context.identities[index].label
        if label:
            return label
    return f"browser{index}"
