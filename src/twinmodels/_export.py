from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w

if TYPE_CHECKING:
    from ._plan import ModelPlan

logger = logging.getLogger(__name__)


def plan_to_dict(plan: ModelPlan) -> dict[str, Any]:
    """Convert a plan to plain data, keyed by operation."""
    return {
        "upload": {
            "order": [doc.id for doc in plan.creation_order],
            "batch": [
                {"index": index, "models": [doc.id for doc in batch]}
                for index, batch in enumerate(plan.batches, start=1)
            ],
        },
        "clear": {
            "order": [doc.id for doc in plan.removal_order],
        },
    }


def export_plan_to_toml(plan: ModelPlan, output_path: Path | str) -> None:
    """Export a creation/removal plan to a TOML file.

    Args:
        plan: The plan computed for a working set
        output_path: Path to the output TOML file

    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("wb") as f:
        tomli_w.dump(plan_to_dict(plan), f)

    logger.info(f"Exported plan to {output_path}")
