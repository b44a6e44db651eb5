# releasegate/services/builder.py
from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
from typing import List, Optional

from releasegate.errors import BuildError
from releasegate.models.deployment import DeployableUnit

logger = logging.getLogger(__name__)


class UnitBuilder:
    """
    Runs a unit's own build in place. Node units (package.json) get
    ``npm install`` and, when they define one, ``npm run build``; Python
    units (requirements.txt) get their dependencies vendored next to the
    code. Anything else is deployed as-is.
    """

    def __init__(self, npm_bin: str = "npm", python_bin: Optional[str] = None, timeout: int = 900) -> None:
        self._npm = npm_bin
        self._python = python_bin or sys.executable
        self._timeout = timeout

    def commands(self, source_dir: str) -> List[List[str]]:
        package_json = os.path.join(source_dir, "package.json")
        if os.path.exists(package_json):
            cmds = [[self._npm, "install"]]
            try:
                with open(package_json, encoding="utf-8") as f:
                    scripts = json.load(f).get("scripts") or {}
            except (OSError, ValueError) as e:
                logger.warning("could not read %s: %s", package_json, e)
                scripts = {}
            if "build" in scripts:
                cmds.append([self._npm, "run", "build"])
            return cmds
        if os.path.exists(os.path.join(source_dir, "requirements.txt")):
            return [[self._python, "-m", "pip", "install", "--quiet", "-r", "requirements.txt", "-t", "."]]
        return []

    def build(self, unit: DeployableUnit) -> None:
        for cmd in self.commands(unit.source_dir):
            logger.info("running %s in %s", " ".join(cmd), unit.source_dir)
            try:
                result = subprocess.run(cmd, cwd=unit.source_dir, capture_output=True, text=True, timeout=self._timeout)
            except subprocess.TimeoutExpired as e:
                raise BuildError(unit.name, f"{' '.join(cmd)} timed out") from e
            except OSError as e:
                raise BuildError(unit.name, f"could not run {cmd[0]}: {e}") from e
            logger.debug("stdout: %s", result.stdout)
            if result.returncode != 0:
                errors = [line for line in (result.stderr or result.stdout).strip().split("\n") if line.strip()]
                raise BuildError(unit.name, f"{' '.join(cmd)} failed (rc={result.returncode}): {' | '.join(errors[-5:])}")


__all__ = ["UnitBuilder"]
