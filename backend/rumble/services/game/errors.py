"""Domain exceptions for the rumble game engine."""


class RumbleError(Exception):
    """Base exception for all game-engine errors"""
    pass


class ValidationError(RumbleError):
    """Raised when required input is empty or malformed"""
    pass


class PreconditionViolation(RumbleError):
    """Raised when an operation targets an entity in the wrong lifecycle state"""
    pass


class ImportParseError(RumbleError):
    """Raised when an import payload cannot be read as a game state"""
    pass
