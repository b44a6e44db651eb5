# releasegate/services/discovery.py
import logging
from pathlib import Path
from typing import List, Union

from releasegate.models.deployment import DeployableUnit

logger = logging.getLogger(__name__)

DEFAULT_UNITS_DIR = "runtime-actions"


def discover_units(root: Union[str, Path], units_dir: str = DEFAULT_UNITS_DIR) -> List[DeployableUnit]:
    """
    One unit per directory directly under ``root/units_dir``, sorted by name.
    A checkout without the units directory simply has nothing to deploy.
    """
    base = Path(root).resolve() / units_dir
    if not base.is_dir():
        logger.info("no %s directory under %s", units_dir, root)
        return []

    units = [
        DeployableUnit(name=entry.name, source_dir=str(entry))
        for entry in sorted(base.iterdir(), key=lambda p: p.name)
        if entry.is_dir()
    ]
    logger.info("found %d unit(s) under %s: %s", len(units), base, ", ".join(u.name for u in units))
    return units


__all__ = ["discover_units", "DEFAULT_UNITS_DIR"]
