from __future__ import annotations

import logging
import os
import time
from typing import Any

import requests

from rec_league.errors import StorageUnavailable

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Minimal PostgREST client for the league tables hosted on Supabase."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 15.0,
        max_retries: int = 3,
        page_size: int = 1000,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.page_size = max(1, page_size)
        if not self.base_url:
            raise RuntimeError("SUPABASE_URL is not set. Add it to your environment or .env file.")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.api_key = (api_key or os.getenv("SUPABASE_ANON_KEY") or "").strip()
        if not self.api_key:
            raise RuntimeError("SUPABASE_ANON_KEY is not set. Add it to your environment or .env file.")

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        table: str,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}/rest/v1/{table.lstrip('/')}"
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                if status is not None and (status == 429 or status >= 500) and attempt < self.max_retries:
                    sleep_seconds = 1.0 * attempt
                    logger.warning(
                        "Supabase returned %s for %s %s. Retrying in %.1fs (attempt %s/%s)",
                        status,
                        method,
                        table,
                        sleep_seconds,
                        attempt,
                        self.max_retries,
                    )
                    time.sleep(sleep_seconds)
                    continue

                msg = exc.response.text[:300] if exc.response is not None else str(exc)
                raise StorageUnavailable(f"Supabase request failed ({method} {url}): {msg}") from exc
            except requests.RequestException as exc:
                if attempt < self.max_retries:
                    sleep_seconds = 1.0 * attempt
                    logger.warning(
                        "Network error calling Supabase; retrying in %.1fs (attempt %s/%s)",
                        sleep_seconds,
                        attempt,
                        self.max_retries,
                    )
                    time.sleep(sleep_seconds)
                    continue
                raise StorageUnavailable(f"Network error calling Supabase ({url}): {exc}") from exc

        raise StorageUnavailable(f"Supabase request failed after {self.max_retries} attempts ({url})")

    def select(self, table: str, order: str | None = None, **filters: str) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"select": "*"}
        if order:
            params["order"] = order
        for column, value in filters.items():
            params[column] = f"eq.{value}"
        offset = 0
        out: list[dict[str, Any]] = []
        while True:
            req_params = dict(params)
            req_params["limit"] = self.page_size
            req_params["offset"] = offset
            rows = list(self._request("GET", table, params=req_params) or [])
            out.extend(rows)
            # PostgREST caps each response, a short page is the last one.
            if len(rows) < self.page_size:
                break
            offset += len(rows)
        return out

    def upsert(self, table: str, rows: list[dict[str, Any]], on_conflict: str) -> None:
        if not rows:
            return
        self._request(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            payload=rows,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    def delete(self, table: str, **filters: str) -> int:
        if not filters:
            raise ValueError("Refusing to delete without a filter")
        params = {column: f"eq.{value}" for column, value in filters.items()}
        rows = self._request(
            "DELETE",
            table,
            params=params,
            headers={"Prefer": "return=representation"},
        )
        return len(rows or [])
