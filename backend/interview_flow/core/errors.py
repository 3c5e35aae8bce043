class FlowError(Exception):
    """Base class for errors surfaced by the adaptive flow engine."""

    status_code = 500
    public_message = "Internal error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(FlowError):
    """Bad caller input: missing field, out-of-range difficulty."""

    status_code = 400
    public_message = "Invalid request"


class NotFoundError(FlowError):
    status_code = 404
    public_message = "Flow state not found"


class PersistenceError(FlowError):
    """The flow state store could not be read or written.

    The previously stored document remains authoritative.
    """

    status_code = 500
    public_message = "Failed to persist flow state"


class GenerationParseError(FlowError):
    """Generation output could not be parsed. Never leaves the engine."""

    public_message = "Unparseable generation output"


class TransportError(FlowError):
    """The voice transport failed mid-call."""

    public_message = "Voice transport failure"
