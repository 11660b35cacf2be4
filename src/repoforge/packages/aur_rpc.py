"""AUR RPC client used as a version fallback for AUR packages."""

import logging
from typing import Optional

import requests

DEFAULT_AUR_BASE = "https://aur.archlinux.org"


class AURClient:
    """Queries the AUR RPC v5 ``info`` endpoint."""

    def __init__(self, base_url: str = DEFAULT_AUR_BASE, timeout: int = 30):
        """Initialize client.

        Args:
            base_url: AUR base URL
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def info_url(self) -> str:
        return f"{self.base_url}/rpc/v5/info"

    def fetch_version(self, name: str) -> Optional[str]:
        """Look up the current AUR version of a package.

        Args:
            name: Package name

        Returns:
            Version string from ``results[0].Version``, or None if the package
            is unknown or the request fails
        """
        try:
            response = requests.get(
                self.info_url, params={"arg[]": name}, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logging.warning(f"AUR RPC lookup failed for {name}: {e}")
            return None

        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            return None
        version = results[0].get("Version")
        return version or None
