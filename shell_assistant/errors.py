from typing import Optional


class AssistantError(Exception):
    """Base class for every error the assistant reports to the user."""

    def user_message(self) -> str:
        return str(self)


class ConfigError(AssistantError):
    """Missing or invalid settings or credentials. Never retried."""

    def user_message(self) -> str:
        return f"Configuration error: {self}"


class CallError(AssistantError):
    """A provider call failed before a usable response was received."""

    def user_message(self) -> str:
        return f"LLM API error: {self}"


class ConnectError(CallError):
    def user_message(self) -> str:
        return f"{self}. Please check your network connection."


class RequestTimeoutError(CallError):
    def user_message(self) -> str:
        return "LLM request timed out. Please try again or increase the timeout (llm.timeout)."


class ProviderError(CallError):
    """The provider answered with a non-2xx status."""

    def __init__(self, provider: str, status_code: int, message: str):
        super().__init__(f"{provider} API Error ({status_code}): {message}")
        self.provider = provider
        self.status_code = status_code
        self.message = message

    def user_message(self) -> str:
        if self.status_code == 401:
            return f"Authentication error: {self.message}. Check your API key (assist secret {self.provider.lower()})."
        if self.status_code == 429:
            return "Rate limit exceeded. Please wait a moment and try again."
        return f"LLM API error: {self}"


class ParseError(AssistantError):
    """The model's text could not be turned into the expected structure."""

    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text

    def user_message(self) -> str:
        return f"Failed to parse LLM response: {self}"


class UnknownModeError(AssistantError):
    def __init__(self, mode: str):
        super().__init__(f"Unknown mode selected by the model: '{mode}'")
        self.mode = mode


class CommandExecutionError(AssistantError):
    def user_message(self) -> str:
        return f"Command execution failed: {self}"


class CommandTimeoutError(CommandExecutionError):
    def __init__(self, timeout: float, partial_stdout: bytes = b""):
        super().__init__(f"Command timed out after {timeout:g}s")
        self.timeout = timeout
        self.partial_stdout = partial_stdout

    @property
    def partial_output(self) -> str:
        return self.partial_stdout.decode("utf-8", errors="replace")


class UserCancelled(AssistantError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Operation cancelled by user.")


# Call failures and parse failures draw from one shared attempt budget.
RETRYABLE_ERRORS = (CallError, ParseError)
