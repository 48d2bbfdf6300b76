"""
Gamepass aggregation pipeline.
"""

from __future__ import annotations

from functools import partial
from typing import Dict, Iterator, List, Optional, Sequence

from shared.logging import get_logger

from service_gamepasses.app.adapters.roblox_client import ICON_BATCH_SIZE, RobloxClient
from service_gamepasses.app.gamepasses.models import Gamepass

from .pagination import collect_pages


def chunked(values: Sequence[int], size: int) -> Iterator[Sequence[int]]:
    """Yield consecutive slices of at most ``size`` values."""
    for start in range(0, len(values), size):
        yield values[start:start + size]


class GamepassAggregator:
    """Collects every public gamepass created by a user, with icons.

    Games are walked one after another in listing order and each game's
    passes in pagination order, so the result order is deterministic for
    identical upstream responses. The first failing upstream call aborts the
    whole run; nothing partial is returned.
    """

    def __init__(
        self,
        client: RobloxClient,
        *,
        max_pages: Optional[int] = None,
        icon_batch_size: int = ICON_BATCH_SIZE,
    ) -> None:
        self.client = client
        self.max_pages = max_pages
        self.icon_batch_size = icon_batch_size
        self.logger = get_logger("gamepasses.aggregator")

    async def aggregate(self, user_id: str) -> List[Gamepass]:
        """Run the full pipeline for one Roblox user."""
        universes = await self.client.list_owner_games(user_id)
        self.logger.info("Fetched owner games", roblox_user_id=user_id, games=len(universes))

        gamepasses: List[Gamepass] = []
        for universe in universes:
            passes = await collect_pages(
                partial(self.client.list_game_passes, universe.id),
                max_pages=self.max_pages,
            )
            self.logger.debug("Fetched game passes", universe_id=universe.id, passes=len(passes))
            gamepasses.extend(passes)

        if gamepasses:
            await self._attach_icons(gamepasses)

        return gamepasses

    async def _attach_icons(self, gamepasses: List[Gamepass]) -> None:
        """Fill ``icon_image_url`` in place for every id the thumbnails API knows."""
        by_id: Dict[int, Gamepass] = {}
        for gamepass in gamepasses:
            by_id.setdefault(gamepass.id, gamepass)

        ids = list(by_id)
        for chunk in chunked(ids, self.icon_batch_size):
            self.logger.debug("Fetching thumbnails", count=len(chunk))
            icons = await self.client.get_game_pass_icons(chunk)
            for gamepass_id, image_url in icons.items():
                gamepass = by_id.get(gamepass_id)
                if gamepass is not None:
                    gamepass.icon_image_url = image_url
