#!/usr/bin/env python3
"""Health checks for a deployed reseller portal backend."""

from __future__ import annotations

import os
import time

import httpx


def fail(message: str) -> None:
    print(f"ERROR: {message}")
    raise SystemExit(1)


def normalize_base_url(base_url: str) -> str:
    url = (base_url or "").strip().rstrip("/")
    # Accept values like ".../api" or ".../api/v1".
    for suffix in ("/api/v1", "/api"):
        if url.endswith(suffix):
            return url[: -len(suffix)]
    return url


def check_endpoint(
    client: httpx.Client,
    path: str,
    expected_status: str,
    *,
    retries: int,
    retry_delay: float,
) -> None:
    last_error = None

    for attempt in range(retries + 1):
        try:
            response = client.get(path)
            if response.status_code != 200:
                raise RuntimeError(f"{path} returned HTTP {response.status_code}. Body: {response.text[:300]}")
            data = response.json()
            actual_status = data.get("status") if isinstance(data, dict) else None
            if actual_status != expected_status:
                raise RuntimeError(f"{path} status mismatch: expected '{expected_status}', got '{actual_status}'.")
            print(f"OK: {path} -> status={actual_status}")
            return
        except httpx.HTTPError as exc:
            last_error = f"{path} request failed: {exc}"
        except (RuntimeError, ValueError) as exc:
            last_error = str(exc)

        if attempt < retries:
            wait = retry_delay * (attempt + 1)
            print(f"WARN: {last_error} (retry {attempt + 1}/{retries} in {wait:.1f}s)")
            time.sleep(wait)

    fail(last_error or f"{path} failed")


def main() -> None:
    base_url = normalize_base_url(os.getenv("PORTAL_BASE_URL", ""))
    if not base_url:
        fail("Missing PORTAL_BASE_URL environment variable.")

    timeout = int(os.getenv("HEALTHCHECK_TIMEOUT_SECONDS", "25"))
    retries = int(os.getenv("HEALTHCHECK_RETRIES", "4"))
    retry_delay = float(os.getenv("HEALTHCHECK_RETRY_DELAY_SECONDS", "4"))

    print(f"Healthcheck config: base_url={base_url} timeout={timeout}s retries={retries} retry_delay={retry_delay}s")

    with httpx.Client(base_url=base_url, timeout=timeout, headers={"User-Agent": "portal-healthcheck/1.0"}) as client:
        check_endpoint(client, "/healthz", "ok", retries=retries, retry_delay=retry_delay)
        check_endpoint(client, "/readyz", "ready", retries=retries, retry_delay=retry_delay)
    print("SUCCESS: all health checks passed.")


if __name__ == "__main__":
    main()
