"""Client-side wizard: uploads, state, persistence and the terminal front end."""

from .uploads import StoredImage, UploadedImage
from .state import DESIGN_STEP, ORDER_STEP, STATE_SCHEMA_VERSION, TRY_ON_STEP, Wizard, WizardSnapshot
from .storage import STATE_KEY, LocalStorage, StateRepository
from .api_client import StudioClient

__all__ = [
    "StoredImage",
    "UploadedImage",
    "DESIGN_STEP",
    "TRY_ON_STEP",
    "ORDER_STEP",
    "STATE_SCHEMA_VERSION",
    "Wizard",
    "WizardSnapshot",
    "STATE_KEY",
    "LocalStorage",
    "StateRepository",
    "StudioClient",
]
