# releasegate/services/source.py
from __future__ import annotations

import logging
import subprocess
from typing import List, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from releasegate.config import GateConfig
from releasegate.errors import SourceError

logger = logging.getLogger(__name__)


def _with_credentials(url: str, username: str, password: str) -> str:
    """Embed basic-auth credentials into an https clone URL."""
    if not username:
        return url
    parts = urlsplit(url)
    auth = quote(username, safe="")
    if password:
        auth += ":" + quote(password, safe="")
    host = parts.netloc.rsplit("@", 1)[-1]
    return urlunsplit((parts.scheme, f"{auth}@{host}", parts.path, parts.query, parts.fragment))


class GitSourceProvider:
    """
    Materializes the configured repository at a revision by shelling out to
    ``git``. Branch names, tags and commit ids are all accepted as revisions.
    """

    def __init__(self, url: str, username: str = "", password: str = "",
                 git_bin: str = "git", timeout: Optional[int] = 600) -> None:
        if not url:
            raise SourceError("no source repository configured (GIT_URL)")
        self._url = url
        self._auth_url = _with_credentials(url, username, password)
        self._secret = password
        self._git = git_bin
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: GateConfig) -> "GitSourceProvider":
        return cls(config.git_url, config.git_username, config.git_password)

    def _mask(self, text: str) -> str:
        if self._secret:
            text = text.replace(self._secret, "***").replace(quote(self._secret, safe=""), "***")
        return text

    def _run(self, args: List[str], cwd: Optional[str] = None) -> None:
        cmd = [self._git] + args
        try:
            result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            raise SourceError(f"git {args[0]} timed out after {self._timeout}s") from e
        except OSError as e:
            raise SourceError(f"could not run {self._git}: {e}") from e
        if result.returncode != 0:
            detail = self._mask((result.stderr or result.stdout or "").strip())
            raise SourceError(f"git {args[0]} failed (rc={result.returncode}): {detail}")

    def checkout(self, directory: str, revision: str) -> str:
        """Clone into ``directory`` and check out ``revision``. Returns the directory."""
        if not revision:
            raise SourceError("no revision given to check out")
        logger.info("cloning %s into %s", self._url, directory)
        self._run(["clone", "--quiet", "--no-checkout", self._auth_url, directory])
        logger.info("checking out %s", revision)
        self._run(["checkout", "--quiet", revision], cwd=directory)
        return directory


__all__ = ["GitSourceProvider"]
