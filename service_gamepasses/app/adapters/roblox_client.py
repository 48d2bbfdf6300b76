"""
Async client for the public Roblox games and thumbnails APIs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

import httpx

from shared.errors import UpstreamFailureError, UpstreamForbiddenError
from shared.logging import get_logger

from service_gamepasses.app.gamepasses.models import Gamepass, Universe

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


OWNER_GAMES_PAGE_SIZE = 50
GAME_PASSES_PAGE_SIZE = 100
ICON_BATCH_SIZE = 100
ICON_SIZE = "150x150"
ICON_FORMAT = "Png"


class RobloxClient:
    """Thin wrapper over the three Roblox endpoints the aggregator needs.

    Each method performs exactly one GET. Failures are classified into
    ``UpstreamForbiddenError`` (HTTP 403) and ``UpstreamFailureError``
    (transport errors, other non-2xx statuses, non-JSON bodies). A JSON body
    without the expected ``data`` list is read as an empty collection.
    """

    def __init__(
        self,
        games_url: str = "https://games.roblox.com",
        thumbnails_url: str = "https://thumbnails.roblox.com",
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.games_url = games_url.rstrip("/")
        self.thumbnails_url = thumbnails_url.rstrip("/")
        self.metrics = metrics
        self.logger = get_logger("gamepasses.roblox_client")
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def list_owner_games(self, user_id: str) -> List[Universe]:
        """Return the user's public games (first page only)."""
        body = await self._get_json(
            "owner_games",
            f"{self.games_url}/v2/users/{user_id}/games",
            {"accessFilter": "Public", "limit": OWNER_GAMES_PAGE_SIZE},
        )
        universes = [Universe.from_api(entry) for entry in _data_list(body)]
        return [universe for universe in universes if universe is not None]

    async def list_game_passes(self, universe_id: int, cursor: str = "") -> Tuple[List[Gamepass], str]:
        """Return one page of a game's passes and the next cursor ("" when done)."""
        params: Dict[str, Any] = {"limit": GAME_PASSES_PAGE_SIZE}
        if cursor:
            params["cursor"] = cursor

        self.logger.debug("Fetching game passes", universe_id=universe_id, cursor=cursor)
        body = await self._get_json(
            "game_passes",
            f"{self.games_url}/v1/games/{universe_id}/game-passes",
            params,
        )
        passes = [Gamepass.from_api(entry) for entry in _data_list(body)]
        next_cursor = body.get("nextPageCursor") if isinstance(body, dict) else None
        return [gamepass for gamepass in passes if gamepass is not None], str(next_cursor or "")

    async def get_game_pass_icons(self, gamepass_ids: Sequence[int]) -> Dict[int, str]:
        """Return ``{gamepass_id: image_url}`` for at most ``ICON_BATCH_SIZE`` ids.

        Ids the thumbnails API does not return (or returns without an image)
        are absent from the mapping.
        """
        if len(gamepass_ids) > ICON_BATCH_SIZE:
            raise ValueError(f"At most {ICON_BATCH_SIZE} gamepass ids per icon lookup, got {len(gamepass_ids)}")
        if not gamepass_ids:
            return {}

        self.logger.debug("Fetching gamepass thumbnails", count=len(gamepass_ids))
        body = await self._get_json(
            "game_pass_icons",
            f"{self.thumbnails_url}/v1/game-passes",
            {
                "gamePassIds": ",".join(str(gamepass_id) for gamepass_id in gamepass_ids),
                "size": ICON_SIZE,
                "format": ICON_FORMAT,
                "isCircular": "false",
            },
        )

        icons: Dict[int, str] = {}
        for entry in _data_list(body):
            if not isinstance(entry, dict):
                continue
            target_id = entry.get("targetId")
            image_url = entry.get("imageUrl")
            if isinstance(target_id, int) and not isinstance(target_id, bool) and image_url:
                icons[target_id] = str(image_url)
        return icons

    async def _get_json(self, endpoint: str, url: str, params: Dict[str, Any]) -> Any:
        """Issue one GET and decode the JSON body, classifying failures."""
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            self.logger.error("Roblox API request failed", endpoint=endpoint, url=url, error=str(exc))
            self._record(endpoint, "transport_error")
            raise UpstreamFailureError(details={"endpoint": endpoint, "error": str(exc)}) from exc

        if response.status_code == 403:
            self.logger.error("Roblox API forbidden", endpoint=endpoint, url=url)
            self._record(endpoint, "forbidden")
            raise UpstreamForbiddenError(details={"endpoint": endpoint, "status_code": 403})

        if not response.is_success:
            self.logger.error(
                "Roblox API request failed",
                endpoint=endpoint,
                url=url,
                status_code=response.status_code,
                response=response.text[:500],
            )
            self._record(endpoint, "http_error")
            raise UpstreamFailureError(details={"endpoint": endpoint, "status_code": response.status_code})

        try:
            body = response.json()
        except ValueError as exc:
            self.logger.error("Roblox API returned a non-JSON body", endpoint=endpoint, url=url)
            self._record(endpoint, "invalid_body")
            raise UpstreamFailureError(details={"endpoint": endpoint, "error": "invalid JSON body"}) from exc

        self._record(endpoint, "ok")
        return body

    def _record(self, endpoint: str, outcome: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_requests_total", endpoint=endpoint, outcome=outcome)


def _data_list(body: Any) -> List[Any]:
    """The ``data`` array of a Roblox list response, or [] when missing."""
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return []
