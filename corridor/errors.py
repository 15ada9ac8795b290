"""
Exception classes for the corridor engine.
"""


class CorridorError(Exception):
    """Base exception for all corridor engine errors."""

    pass


class ValidationError(CorridorError, ValueError):
    """
    Raised when a record field or weight vector violates its declared bound.

    Always raised before any scoring begins. ``field`` names the offending
    attribute (or ``"weights"`` for a sum violation).
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class CollaboratorUnavailable(CorridorError, RuntimeError):
    """
    Raised when an external collaborator (directory, store) cannot answer.

    Callers recover with a neutral default where one exists, otherwise the
    affected entity is skipped and reported in the run metadata.
    """

    def __init__(self, collaborator: str, message: str, original_error: Exception = None):
        self.collaborator = collaborator
        self.original_error = original_error
        super().__init__(f"{collaborator} unavailable: {message}")


class StationLookupError(CollaboratorUnavailable):
    """Raised when the station directory cannot resolve a station id."""

    def __init__(self, station_id: int, message: str = "station not found", original_error: Exception = None):
        self.station_id = station_id
        super().__init__("station directory", f"{station_id}: {message}", original_error)


class PresetNotFound(CorridorError, KeyError):
    """Raised when a named weight preset exists neither in the store nor built-in."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self):
        return f"Preset '{self.name}' not found"


class InvariantViolation(CorridorError, AssertionError):
    """
    Raised when a computed value breaks an engine invariant
    (score outside [0,100], duplicate ranks).

    Never expected with correct primitives.
    """

    pass
