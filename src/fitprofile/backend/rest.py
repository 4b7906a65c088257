"""Table backend over a PostgREST-style hosted table API.

Tables are served under ``{base_url}/rest/v1/<table>``. Reads filter with
``column=eq.value`` query parameters and may embed related tables in the
``select`` parameter; failed calls return a JSON error object with a
``message`` field.
"""

import logging
from datetime import date, datetime
from typing import Any

import httpx

from fitprofile.backend.base import Row, TableBackend
from fitprofile.errors import BackendError

logger = logging.getLogger(__name__)

PROFILE_SELECT = "id,name,photo_url,available_equipment"
STATS_SELECT = "height_cm,weight_kg,age,gender,bmi,recorded_at"
GOALS_SELECT = (
    "id,goal_type,status,target_date,metric_type,current_value,target_value,"
    "frequency,start_date,goal_workout_plans(template_id,workout_templates(name))"
)


def _encode(values: Row) -> Row:
    return {
        key: value.isoformat() if isinstance(value, (date, datetime)) else value
        for key, value in values.items()
    }


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text or f"HTTP {response.status_code}"


class RestTableBackend(TableBackend):
    """Reads and writes profile tables through the hosted REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        }
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"))
        self._headers = headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = await self._client.request(
                method, f"/rest/v1/{table}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise BackendError(f"{table}: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.debug("%s %s failed (%s): %s", method, table, response.status_code, message)
            raise BackendError(message)
        if not response.content:
            return None
        return response.json()

    async def fetch_profile(self, user_id: str) -> Row | None:
        rows = await self._request(
            "GET", "profiles", params={"select": PROFILE_SELECT, "id": f"eq.{user_id}"}
        )
        return rows[0] if rows else None

    async def fetch_latest_stats(self, user_id: str) -> Row | None:
        rows = await self._request(
            "GET",
            "physical_stats",
            params={
                "select": STATS_SELECT,
                "user_id": f"eq.{user_id}",
                "order": "recorded_at.desc",
                "limit": "1",
            },
        )
        return rows[0] if rows else None

    async def fetch_goals(self, user_id: str) -> list[Row]:
        rows = await self._request(
            "GET",
            "user_goals",
            params={
                "select": GOALS_SELECT,
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc",
            },
        )
        return list(rows or [])

    async def update_profile(self, user_id: str, values: Row) -> None:
        await self._request(
            "PATCH",
            "profiles",
            params={"id": f"eq.{user_id}"},
            json=_encode(values),
            prefer="return=minimal",
        )

    async def insert_stats(self, values: Row) -> None:
        await self._request(
            "POST", "physical_stats", json=_encode(values), prefer="return=minimal"
        )

    async def aclose(self) -> None:
        await self._client.aclose()
