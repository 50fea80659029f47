"""
Position evaluation contract consumed by the external search algorithm.

Evaluators score SimulationState snapshots only, never the live game. The
base SimulationEvaluator is the neutral reference strategy: it checks the
calling convention and always answers 0.0. Concrete strategies override
score().
"""

from dataclasses import dataclass

from gemarena.errors import InvalidStateError
from gemarena.game.pieces import opponent_of
from gemarena.simulation.simulated_state import SimulationState

NEUTRAL_SCORE = 0.0


@dataclass(frozen=True)
class ObservationData:
    """Telemetry snapshot of a simulation state."""

    piece_count: int
    current_player: str
    simulation_depth: int

    def to_dict(self) -> dict:
        return {
            "pieceCount": self.piece_count,
            "currentPlayer": self.current_player,
            "simulationDepth": self.simulation_depth,
        }


class SimulationEvaluator:
    """Neutral evaluator; subclass and override score() for a real heuristic."""

    name = "neutral"

    def evaluate(self, state: SimulationState) -> float:
        """Score a simulation state. Positive favours the side to move.

        Raises:
            InvalidStateError: If state is not a SimulationState
        """
        self._require_simulation_state(state, "evaluate")
        return float(self.score(state))

    def get_observation_data(self, state: SimulationState) -> ObservationData:
        self._require_simulation_state(state, "get_observation_data")
        return ObservationData(
            piece_count=state.piece_count,
            current_player=state.current_player,
            simulation_depth=state.simulation_depth,
        )

    def score(self, state: SimulationState) -> float:
        return NEUTRAL_SCORE

    @staticmethod
    def _require_simulation_state(state, operation: str) -> None:
        if not isinstance(state, SimulationState):
            raise InvalidStateError(
                f"{operation}() requires a SimulationState, got {type(state).__name__}"
            )


class MaterialEvaluator(SimulationEvaluator):
    """Pieces of the side to move minus pieces of the opponent, times a weight."""

    name = "material"

    def __init__(self, piece_weight: float = 1.0):
        self.piece_weight = piece_weight

    def score(self, state: SimulationState) -> float:
        side = state.current_player
        own = state.pieces_of(side)
        theirs = state.pieces_of(opponent_of(side))
        return self.piece_weight * (own - theirs)
