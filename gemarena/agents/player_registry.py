"""Registry mapping AI version ids to player factories."""

from typing import Callable

from gemarena.agents.arena_player import ArenaPlayer
from gemarena.agents.random_player import RandomPlayer
from gemarena.errors import UnknownPlayerError

PlayerFactory = Callable[[str], ArenaPlayer]


class PlayerRegistry:
    """
    Creates fresh player instances by AI version id.

    A new instance is created for every game, so no player state carries
    over between games and results do not depend on how games are scheduled.
    """

    def __init__(self):
        self._factories: dict[str, PlayerFactory] = {}

    def register(self, player_id: str, factory: PlayerFactory) -> None:
        """Register a factory called as factory(player_id).

        Raises:
            ValueError: If the id is already registered
        """
        if player_id in self._factories:
            raise ValueError(f"Player {player_id} already registered")
        self._factories[player_id] = factory

    def create(self, player_id: str) -> ArenaPlayer:
        factory = self._factories.get(player_id)
        if factory is None:
            raise UnknownPlayerError(player_id, self.list_ids())
        return factory(player_id)

    def with_alias(self, alias_id: str, player_id: str) -> "PlayerRegistry":
        """Copy of this registry where alias_id plays with player_id's factory.

        Players created under the alias carry the alias as their id, so an
        anchor can sit across the table from its own policy.

        Raises:
            UnknownPlayerError: If player_id is not registered
            ValueError: If alias_id is already registered
        """
        if player_id not in self._factories:
            raise UnknownPlayerError(player_id, self.list_ids())
        aliased = PlayerRegistry()
        aliased._factories = dict(self._factories)
        aliased.register(alias_id, self._factories[player_id])
        return aliased

    def list_ids(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, player_id: str) -> bool:
        return player_id in self._factories


def default_registry() -> PlayerRegistry:
    """Registry with the built-in players."""
    registry = PlayerRegistry()
    registry.register("RANDOM", RandomPlayer)
    return registry
