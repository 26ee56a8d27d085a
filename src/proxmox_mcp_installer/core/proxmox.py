"""
Proxmox VE API access.

Only the two read-only endpoints the installer needs are wrapped: the
version endpoint used to validate a token and the node list used by the
verifier. Proxmox ships with a self-signed certificate, so TLS
verification is disabled.
"""

from typing import Any, Dict, List, Optional

import httpx

from proxmox_mcp_installer.core.exceptions import NetworkError
from proxmox_mcp_installer.core.interfaces import HttpClient
from proxmox_mcp_installer.core.models import InstallSession
from proxmox_mcp_installer.utils.logging import get_logger

logger = get_logger(__name__)


class HttpxClient(HttpClient):
    """``HttpClient`` implemented with httpx."""

    def __init__(self, connect_timeout: float = 10.0, request_timeout: float = 30.0):
        self.timeout = httpx.Timeout(request_timeout, connect=connect_timeout)

    def get_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        try:
            with httpx.Client(verify=False, timeout=self.timeout) as client:
                response = client.get(url, headers=headers or {})
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"HTTP {e.response.status_code} from {url}",
                error_code="HTTP_STATUS",
                details={"status": e.response.status_code, "body": e.response.text[:500]},
            )
        except httpx.RequestError as e:
            raise NetworkError(f"Request to {url} failed: {e}", error_code="REQUEST_FAILED")
        except (httpx.InvalidURL, httpx.HTTPError) as e:
            raise NetworkError(f"Request to {url} failed: {e}", error_code="INVALID_REQUEST")
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {url}: {e}", error_code="INVALID_JSON")


class ProxmoxApi:
    """Read-only Proxmox API calls authenticated with an API token."""

    def __init__(self, session: InstallSession, http: HttpClient):
        self.session = session
        self.http = http

    def _get(self, endpoint: str) -> Dict[str, Any]:
        url = f"{self.session.api_base_url}{endpoint}"
        payload = self.http.get_json(url, headers={"Authorization": self.session.auth_header})
        if not isinstance(payload, dict):
            raise NetworkError(f"Unexpected response from {url}", error_code="INVALID_RESPONSE")
        return payload

    def version(self) -> str:
        """
        Return the Proxmox VE version reported by ``/version``.

        Raises:
            NetworkError: If the request fails or carries no version
        """
        data = self._get("/version").get("data")
        if not isinstance(data, dict) or not data.get("version"):
            raise NetworkError("Response has no version information", error_code="NO_VERSION")
        return str(data["version"])

    def nodes(self) -> List[str]:
        """
        Return cluster node names from ``/nodes``.

        Raises:
            NetworkError: If the request fails or carries no data payload
        """
        data = self._get("/nodes").get("data")
        if data is None:
            raise NetworkError("Response has no data payload", error_code="NO_DATA")
        return [str(item.get("node")) for item in data if isinstance(item, dict) and item.get("node")]
