# github/api_client.py
from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote, urljoin

from ..errors import APIError

GITHUB_API = "https://api.github.com"


class GitHubClient:
    """HTTP client for the handful of GitHub REST endpoints github-build needs."""

    def __init__(self, token: str, base_url: str = GITHUB_API, timeout: float = 30):
        """
        Initialize API client.

        Args:
            token: Token sent as `Authorization: token ...`
            base_url: Base URL of the API (e.g., "https://api.github.com")
            timeout: Socket timeout in seconds for each request
        """
        # Ensure base_url doesn't end with /
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        data: Optional[dict] = None,
        allow: Tuple[int, ...] = (),
    ) -> Tuple[int, Any]:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, PUT, PATCH, ...)
            path: API path (e.g., "/repos/org/repo")
            data: Optional JSON data to send in request body
            allow: Error statuses returned to the caller instead of raised

        Returns:
            (status, parsed JSON body or {})

        Raises:
            APIError: If the request fails
        """
        url = urljoin(self.base_url + "/", path.lstrip("/"))

        req_headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"token {self.token}",
            "User-Agent": "github-build",
        }
        req_data = None
        if data is not None:
            req_headers["Content-Type"] = "application/json"
            req_data = json.dumps(data).encode("utf-8")

        req = urllib.request.Request(url, data=req_data, headers=req_headers, method=method)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                response_data = response.read().decode("utf-8")
                return response.status, json.loads(response_data) if response_data else {}
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8") if e.fp else ""
            if e.code in allow:
                return e.code, {}
            raise APIError(
                f"{method} {path} failed: {e.code} {e.reason}. {error_body}".strip(),
                status=e.code,
                body=error_body,
            )
        except urllib.error.URLError as e:
            raise APIError(f"Network error: {e.reason}")
        except json.JSONDecodeError as e:
            raise APIError(f"Invalid JSON response: {e}")

    @staticmethod
    def _repo(owner: str, repo: str) -> str:
        return f"/repos/{quote(owner)}/{quote(repo)}"

    # ---------------------------------------------------------------------
    # Reads
    # ---------------------------------------------------------------------

    def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        return self._request("GET", self._repo(owner, repo))[1]

    def get_branch_protection(self, owner: str, repo: str, branch: str) -> Optional[Dict[str, Any]]:
        """Protection of `branch`, or None when the branch is not protected yet."""
        status, body = self._request(
            "GET",
            f"{self._repo(owner, repo)}/branches/{quote(branch, safe='')}/protection",
            allow=(404,),
        )
        return None if status == 404 else body

    # ---------------------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------------------

    def update_branch_protection(self, owner: str, repo: str, branch: str, payload: Dict[str, Any]) -> None:
        self._request("PUT", f"{self._repo(owner, repo)}/branches/{quote(branch, safe='')}/protection", data=payload)

    def enable_vulnerability_alerts(self, owner: str, repo: str) -> None:
        self._request("PUT", f"{self._repo(owner, repo)}/vulnerability-alerts")

    def enable_automated_security_fixes(self, owner: str, repo: str) -> None:
        self._request("PUT", f"{self._repo(owner, repo)}/automated-security-fixes")

    def update_repository(self, owner: str, repo: str, payload: Dict[str, Any]) -> None:
        self._request("PATCH", self._repo(owner, repo), data=payload)
