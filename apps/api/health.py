from __future__ import annotations

import sys

import requests

from nulish.core.settings import get_settings

DEFAULT_URL = "http://localhost:8000"


def main() -> None:
    """Container health probe: exit 0 when ``/health`` answers ok."""
    settings = get_settings()
    base = (settings.remote_url or DEFAULT_URL).rstrip("/")

    try:
        resp = requests.get(f"{base}/health", timeout=5)
        if resp.ok and resp.json().get("status") == "ok":
            sys.exit(0)
        print(f"unhealthy: {resp.status_code}", file=sys.stderr)
    except (requests.RequestException, ValueError) as exc:  # pragma: no cover - network errors
        print(exc, file=sys.stderr)

    sys.exit(1)


if __name__ == "__main__":
    main()
