"""Exception types shared by the server and the terminal client."""


class StudioError(Exception):
    """Base class for Dress Studio errors."""


class ProviderConfigError(StudioError):
    """A provider cannot be used because its credentials are missing."""


class ProviderError(StudioError):
    """An external AI provider call failed."""

    def __init__(self, message: str, provider: str = "provider"):
        super().__init__(message)
        self.provider = provider


class ImageDecodeError(StudioError, ValueError):
    """Image bytes could not be decoded by any decode path."""


class StepLockedError(StudioError):
    """Wizard navigation to a step whose prerequisites are missing."""


class QuotaExceededError(StudioError):
    """Local storage has no room for the value being written."""


def friendly_provider_message(error: Exception, provider: str = "OpenAI") -> str:
    """Translate a provider exception into a message fit for the UI.

    Recognised failure classes (billing, rate limiting, invalid input) get a
    fixed explanation; anything else is passed through with a prefix.
    """
    message = str(error) or error.__class__.__name__
    lowered = message.lower()

    if "billing" in lowered:
        return f"{provider} API billing issue. Please check your {provider} account."
    if "rate limit" in lowered:
        return f"{provider} API rate limit exceeded. Please try again later."
    if "invalid" in lowered:
        return "Invalid image format. Please use JPG or PNG images."

    return f"{provider} generation failed: {message}"
