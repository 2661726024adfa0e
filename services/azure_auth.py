"""
Microsoft identity platform sign-in for the Graph and Defender for Endpoint APIs.

A single public client application signs the operator in once and hands out
two delegated bearer tokens: one for Microsoft Graph (group and device reads)
and one for the Defender for Endpoint API (machine reads and tag writes).
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

import msal
import requests

from config import Config
from src.tagging.errors import AuthenticationError
from src.utils.http_utils import RobustHTTPSession

logger = logging.getLogger(__name__)

GRAPH_SCOPES = ["GroupMember.Read.All", "Device.Read.All"]


class AzureAuthenticator:
    """Acquires and releases delegated tokens through MSAL."""

    def __init__(self, config: Config, use_device_code: bool = False, app: Optional[msal.PublicClientApplication] = None):
        self.config = config
        self.use_device_code = use_device_code
        self._app = app

    @property
    def app(self) -> msal.PublicClientApplication:
        # MSAL resolves the authority over the network when the application is built
        if self._app is None:
            try:
                self._app = msal.PublicClientApplication(
                    self.config.azure_client_id,
                    authority=self.config.authority,
                    proxies=self.config.proxies,
                )
            except (ValueError, requests.exceptions.RequestException) as e:
                raise AuthenticationError(f"Could not initialize sign-in for tenant {self.config.azure_tenant_id}: {e}")
        return self._app

    def acquire_graph_token(self) -> str:
        logger.info("Signing in to Microsoft Graph")
        return self._acquire(GRAPH_SCOPES, "Microsoft Graph")

    def acquire_defender_token(self) -> str:
        logger.info("Acquiring Defender for Endpoint token")
        return self._acquire([self.config.defender_api_scope], "Defender for Endpoint")

    def _acquire(self, scopes: List[str], audience: str) -> str:
        result = None
        try:
            accounts = self.app.get_accounts()
            if accounts:
                result = self.app.acquire_token_silent(scopes, account=accounts[0])
            if not result:
                result = self._acquire_interactively(scopes)
        except requests.exceptions.RequestException as e:
            raise AuthenticationError(f"Failed to obtain {audience} token: {e}")

        if not result or "access_token" not in result:
            raise AuthenticationError(f"Failed to obtain {audience} token: {_describe_failure(result)}")

        logger.debug(f"{audience} token acquired, expires in {result.get('expires_in', '?')}s")
        return result["access_token"]

    def _acquire_interactively(self, scopes: List[str]) -> Optional[Dict[str, Any]]:
        if not self.use_device_code:
            return self.app.acquire_token_interactive(scopes=scopes)

        flow = self.app.initiate_device_flow(scopes=scopes)
        if "user_code" not in flow:
            raise AuthenticationError(f"Failed to start device code sign-in: {_describe_failure(flow)}")
        print(flow["message"], flush=True)
        return self.app.acquire_token_by_device_flow(flow)

    def sign_out(self) -> None:
        """Remove every signed-in account from the token cache."""
        if self._app is None:
            return
        for account in self._app.get_accounts():
            self._app.remove_account(account)
            logger.debug(f"Signed out {account.get('username', 'account')}")


def _describe_failure(result: Optional[Dict[str, Any]]) -> str:
    if not result:
        return "no response from identity provider"
    error = result.get("error", "unknown_error")
    description = result.get("error_description")
    return f"{error}: {description}" if description else error


@dataclass
class TaggingSession:
    """Authenticated context shared by every stage of one tagging run."""
    authenticator: AzureAuthenticator
    http: RobustHTTPSession
    graph_token: Optional[str] = None
    defender_token: Optional[str] = None
    released: bool = field(default=False)

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.graph_token = None
        self.defender_token = None
        try:
            self.authenticator.sign_out()
        finally:
            self.http.close()
            logger.debug("Session released")


@contextmanager
def open_session(config: Config,
                 use_device_code: bool = False,
                 authenticator: Optional[AzureAuthenticator] = None,
                 http: Optional[RobustHTTPSession] = None):
    """Sign in to both APIs and release the session on every exit path."""
    session = TaggingSession(
        authenticator=authenticator or AzureAuthenticator(config, use_device_code=use_device_code),
        http=http or RobustHTTPSession(max_retries=0, max_attempts=1,
                                       timeout=config.http_timeout_seconds, proxies=config.proxies),
    )
    try:
        session.graph_token = session.authenticator.acquire_graph_token()
        session.defender_token = session.authenticator.acquire_defender_token()
        yield session
    finally:
        session.release()
