# releasegate/services/orchestrator.py
from __future__ import annotations

import logging
import tempfile
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, FrozenSet, List

from releasegate.config import GateConfig
from releasegate.errors import GateError
from releasegate.models.deployment import (
    CREATED,
    FAILED,
    UPDATED,
    DeployableUnit,
    RunResult,
    UnitOutcome,
    function_name,
)
from releasegate.services.builder import UnitBuilder
from releasegate.services.discovery import DEFAULT_UNITS_DIR, discover_units
from releasegate.services.packager import package_unit
from releasegate.services.registry import LambdaRegistry
from releasegate.services.source import GitSourceProvider

logger = logging.getLogger(__name__)


class DeployOrchestrator:
    """
    Checks out a revision, then deploys (or only verifies) every unit in it
    under ``{unit}-{release_version}``.

    The registry is listed once per run; create-vs-update is decided against
    that snapshot only. Units are independent, so they are processed in a
    thread pool. A failing unit is recorded and does not stop the others.
    """

    def __init__(
        self,
        source,
        registry,
        builder=None,
        packager: Callable[[DeployableUnit], bytes] = package_unit,
        units_dir: str = DEFAULT_UNITS_DIR,
        concurrency: int = 4,
    ) -> None:
        self._source = source
        self._registry = registry
        self._builder = builder or UnitBuilder()
        self._package = packager
        self._units_dir = units_dir
        self._concurrency = max(1, concurrency)

    @classmethod
    def from_config(cls, config: GateConfig, lambda_client=None) -> "DeployOrchestrator":
        return cls(
            source=GitSourceProvider.from_config(config),
            registry=LambdaRegistry.from_config(config, client=lambda_client),
            units_dir=config.units_dir,
            concurrency=config.deploy_concurrency,
        )

    def run(self, revision: str, release_version: str, verify_only: bool = False) -> RunResult:
        if not release_version:
            raise GateError("a release version is required")

        with tempfile.TemporaryDirectory(prefix="releasegate-") as workdir:
            logger.info("materializing %s into %s", revision, workdir)
            self._source.checkout(workdir, revision)

            snapshot = self._registry.list_names()
            units = discover_units(workdir, self._units_dir)

            if verify_only:
                return self._verify(units, release_version, snapshot)
            return self._deploy(units, release_version, snapshot)

    def _verify(self, units: List[DeployableUnit], version: str, snapshot: FrozenSet[str]) -> RunResult:
        missing = [u.target(version) for u in units if function_name(u.target(version)) not in snapshot]
        if missing:
            logger.warning("missing deployments for %s: %s", version, ", ".join(missing))
        else:
            logger.info("all %d unit(s) deployed at %s", len(units), version)
        return RunResult(success=not missing, missing=missing)

    def _deploy(self, units: List[DeployableUnit], version: str, snapshot: FrozenSet[str]) -> RunResult:
        if not units:
            return RunResult(success=True)
        workers = min(self._concurrency, len(units))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="deploy") as pool:
            # map keeps discovery order
            outcomes = list(pool.map(lambda u: self._deploy_unit(u, version, snapshot), units))

        failed = [o.unit for o in outcomes if not o.ok]
        if failed:
            logger.error("%d of %d unit(s) failed: %s", len(failed), len(outcomes), ", ".join(failed))
        return RunResult(success=not failed, outcomes=outcomes)

    def _deploy_unit(self, unit: DeployableUnit, version: str, snapshot: FrozenSet[str]) -> UnitOutcome:
        target = unit.target(version)
        name = function_name(target)
        try:
            logger.info("building and deploying %s as %s", unit.source_dir, name)
            self._builder.build(unit)
            archive = self._package(unit)
            if name in snapshot:
                self._registry.update(name, archive)
                return UnitOutcome(unit.name, target, UPDATED, f"action ({name}) updated!")
            self._registry.create(name, archive)
            return UnitOutcome(unit.name, target, CREATED, f"action ({name}) created!")
        except GateError as e:
            logger.error("failed to deploy %s: %s", unit.name, e)
            return UnitOutcome(unit.name, target, FAILED, f"action ({name}) failed", error=str(e))


__all__ = ["DeployOrchestrator"]
