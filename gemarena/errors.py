"""Exception hierarchy shared across the arena packages."""


class ArenaError(Exception):
    """Base class for every error raised by gemarena."""


class ConfigurationError(ArenaError):
    """An opening book or arena configuration document could not be read or parsed."""


class ValidationError(ArenaError, ValueError):
    """Input data violates a structural rule of the opening book or a setup."""


class InvalidSideError(ValidationError):
    def __init__(self, side: str, available: list[str]):
        self.side = side
        self.available = available
        super().__init__(
            f"Invalid side: {side}. Available: {', '.join(available)}"
        )


class EmptyBookError(ValidationError):
    def __init__(self, side: str):
        self.side = side
        super().__init__(f"No setups found for {side}")


class OrderOverflowError(ValidationError):
    def __init__(self, gem: str, defined: int):
        self.gem = gem
        self.defined = defined
        super().__init__(
            f"Setup order requires more {gem} gems than defined ({defined})"
        )


class PlacementCollisionError(ValidationError):
    """Both the primary and the fallback coordinate of a gem are unusable."""


class PlacementExhaustedError(ValidationError):
    """The setup order asks for a coordinate the gem type does not define."""


class BookNotLoadedError(ArenaError, RuntimeError):
    def __init__(self):
        super().__init__("Book not loaded - await load_book() first")


class _UnknownIdError(ArenaError, LookupError):
    kind = "id"

    def __init__(self, requested: str, available: list[str]):
        self.requested = requested
        self.available = list(available)
        super().__init__(
            f"Unknown {self.kind}: {requested}. "
            f"Available: {', '.join(self.available)}"
        )


class UnknownBaselineError(_UnknownIdError):
    kind = "historical baseline"


class UnknownSeedRangeError(_UnknownIdError):
    kind = "seed range"


class UnknownPlayerError(_UnknownIdError):
    kind = "player"


class UnknownAnchorError(_UnknownIdError):
    kind = "anchor"


class ResultsLoadError(ArenaError, OSError):
    """Archived results for a baseline could not be read or parsed."""

    def __init__(self, baseline_id: str, cause: BaseException):
        self.baseline_id = baseline_id
        self.cause = cause
        super().__init__(f"Failed to load results for {baseline_id}: {cause}")


class InvalidStateError(ArenaError, TypeError):
    """An evaluator was handed something that is not a simulation state."""
