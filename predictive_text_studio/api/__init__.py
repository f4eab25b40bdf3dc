"""Keyman API client package — async access to the language catalog.

WHY: The keyboard catalog cache is filled from the Keyman API. This
package keeps all HTTP details in one place.

RULES:
- All catalog HTTP calls go through KeymanAPI (no direct httpx usage elsewhere)
"""

from predictive_text_studio.api.client import KeymanAPI
from predictive_text_studio.api.models import KeymanAPIError, LanguageRecord

__all__ = ["KeymanAPI", "KeymanAPIError", "LanguageRecord"]
