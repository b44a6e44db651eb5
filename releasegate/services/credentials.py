# releasegate/services/credentials.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional

import jwt
import requests

from releasegate.config import GateConfig
from releasegate.errors import CredentialError

logger = logging.getLogger(__name__)

TOKEN_LIFETIME = 60 * 60  # 1 hour


class CredentialIssuer:
    """
    Service-account JWT exchange: signs an assertion with the technical
    account's private key and trades it for a bearer token. Every call
    issues a new token; nothing is cached.
    """

    def __init__(
        self,
        *,
        organization_id: str,
        technical_account_id: str,
        api_key: str,
        client_secret: str,
        private_key: str,
        ims_host: str = "https://ims-na1.adobelogin.com",
        meta_scopes: Iterable[str] = ("ent_cloudmgr_sdk",),
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._org = organization_id
        self._account = technical_account_id
        self._api_key = api_key
        self._secret = client_secret
        self._key = private_key
        self._host = ims_host.rstrip("/")
        self._scopes = tuple(meta_scopes)
        self._timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock

    @classmethod
    def from_config(cls, config: GateConfig, session=None) -> "CredentialIssuer":
        config.require("organization_id", "technical_account_id", "api_key", "client_secret", "private_key")
        return cls(
            organization_id=config.organization_id,
            technical_account_id=config.technical_account_id,
            api_key=config.api_key,
            client_secret=config.client_secret,
            private_key=config.private_key,
            ims_host=config.ims_host,
            meta_scopes=config.meta_scopes,
            timeout=config.http_timeout,
            session=session,
        )

    def claims(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "exp": int(round(self._clock())) + TOKEN_LIFETIME,
            "iss": self._org,
            "sub": self._account,
            "aud": f"{self._host}/c/{self._api_key}",
        }
        for scope in self._scopes:
            payload[f"{self._host}/s/{scope}"] = True
        return payload

    def assertion(self) -> str:
        try:
            return jwt.encode(self.claims(), self._key, algorithm="RS256")
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise CredentialError(f"could not sign JWT assertion: {e}") from e

    def issue(self) -> str:
        url = f"{self._host}/ims/exchange/jwt"
        form = {"client_id": self._api_key, "client_secret": self._secret, "jwt_token": self.assertion()}
        try:
            resp = self._session.post(url, data=form, timeout=self._timeout)
        except requests.RequestException as e:
            raise CredentialError(f"token exchange with {url} failed: {e}") from e
        if not resp.ok:
            raise CredentialError(f"token exchange with {url} returned {resp.status_code}")
        try:
            token = resp.json().get("access_token")
        except ValueError as e:
            raise CredentialError("token exchange returned invalid JSON") from e
        if not token:
            raise CredentialError("token exchange response has no access_token")
        logger.info("issued access token for %s", self._account)
        return token


__all__ = ["CredentialIssuer", "TOKEN_LIFETIME"]
