import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_GRAPH_API_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_DEFENDER_API_BASE_URL = "https://api.securitycenter.microsoft.com"
DEFAULT_DEFENDER_API_SCOPE = "https://api.securitycenter.microsoft.com/Machine.ReadWrite"
DEFAULT_HTTP_TIMEOUT_SECONDS = 120


class ConfigurationError(Exception):
    """Raised when required settings are missing or malformed."""


def get_config():
    return Config(
        azure_tenant_id=os.environ.get("AZURE_TENANT_ID"),
        azure_client_id=os.environ.get("AZURE_CLIENT_ID"),
        graph_api_base_url=os.environ.get("GRAPH_API_BASE_URL", DEFAULT_GRAPH_API_BASE_URL),
        defender_api_base_url=os.environ.get("DEFENDER_API_BASE_URL", DEFAULT_DEFENDER_API_BASE_URL),
        defender_api_scope=os.environ.get("DEFENDER_API_SCOPE", DEFAULT_DEFENDER_API_SCOPE),
        https_proxy_url=os.environ.get("HTTPS_PROXY_URL"),
        http_timeout_seconds=_parse_timeout(os.environ.get("HTTP_TIMEOUT_SECONDS")),
    )


def _parse_timeout(raw: Optional[str]) -> int:
    if not raw:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"HTTP_TIMEOUT_SECONDS must be an integer, got {raw!r}")


@dataclass
class Config:
    """Configuration settings for the application."""
    azure_tenant_id: Optional[str] = None
    azure_client_id: Optional[str] = None
    graph_api_base_url: str = DEFAULT_GRAPH_API_BASE_URL
    defender_api_base_url: str = DEFAULT_DEFENDER_API_BASE_URL
    defender_api_scope: str = DEFAULT_DEFENDER_API_SCOPE
    https_proxy_url: Optional[str] = None
    http_timeout_seconds: int = DEFAULT_HTTP_TIMEOUT_SECONDS

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.azure_tenant_id}"

    @property
    def proxies(self) -> Optional[dict]:
        if not self.https_proxy_url:
            return None
        return {"http": self.https_proxy_url, "https": self.https_proxy_url}

    def missing_settings(self) -> List[str]:
        missing = []
        if not self.azure_tenant_id:
            missing.append("AZURE_TENANT_ID")
        if not self.azure_client_id:
            missing.append("AZURE_CLIENT_ID")
        return missing

    def validate(self) -> None:
        missing = self.missing_settings()
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
