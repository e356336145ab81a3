"""Error taxonomy for tool dispatch."""


class AtprotoMCPError(Exception):
    """Base class for errors raised by tools and the dispatch layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownToolError(AtprotoMCPError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class DuplicateToolError(AtprotoMCPError):
    """Two tool groups declare the same name. Raised at startup."""

    def __init__(self, name: str):
        super().__init__(f"Duplicate tool name: {name}")
        self.name = name


class ValidationError(AtprotoMCPError):
    """Caller-supplied arguments violate a tool's precondition."""


class CommandFailure(AtprotoMCPError):
    """The external program failed, timed out, or wrote only to stderr."""

    def __init__(self, message: str, exit_code=None):
        super().__init__(f"Command failed: {message}")
        self.exit_code = exit_code


class IOFailure(AtprotoMCPError):
    """A batch file could not be read or parsed."""
