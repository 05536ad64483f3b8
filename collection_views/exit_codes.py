"""
Standard exit codes and command errors for collection-views.

Following Unix/POSIX conventions for command-line tools.
"""

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NO_NOTES_FOUND = 64      # Query matched no notes
HOST_ERROR = 65          # Host API call failed (ETAPI, note graph)
CONFIG_ERROR = 66        # Collection or application configuration error
NOTE_NOT_FOUND = 67      # Collection note does not exist
NETWORK_ERROR = 68       # Network connection failed
DATA_ERROR = 70          # Data format or validation error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'YAMLError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class NoNotesFoundError(CommandError):
    """Raised when a collection's query matches no notes."""
    def __init__(self, message: str = "No notes found."):
        super().__init__(message, NO_NOTES_FOUND)


class NoteNotFoundError(CommandError):
    """Raised when the collection note itself cannot be found."""
    def __init__(self, note_id: str):
        super().__init__(f"Note not found: {note_id}", NOTE_NOT_FOUND)
        self.note_id = note_id


class HostError(CommandError):
    """Raised when a call to the host's note API fails."""
    def __init__(self, message: str):
        super().__init__(message, HOST_ERROR)


class NoteGraphError(CommandError):
    """Raised when a note graph file cannot be read."""
    def __init__(self, message: str):
        super().__init__(message, DATA_ERROR)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)
