"""Credential gate and google-genai client construction."""

import logging
from typing import Optional

from google import genai

from ..config import Config, config as default_config

logger = logging.getLogger(__name__)


class CredentialStore:
    """Holds the credential every Google call is made with.

    In Gemini API mode the credential is an API key, which can be selected
    at runtime. In Vertex AI mode it is the project's application default
    credentials, so a configured project counts as a selected key.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[Config] = None,
    ) -> None:
        self._settings = settings or default_config
        self._api_key = api_key or self._settings.gemini_api_key

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def use_vertex(self) -> bool:
        return self._settings.use_vertex

    @property
    def project(self) -> Optional[str]:
        """Google Cloud project for Vertex AI and Cloud Storage calls."""
        return self._settings.google_cloud_project or None

    def has_selected_key(self) -> bool:
        """Return True when a credential is available."""
        if self.use_vertex:
            return bool(self._settings.google_cloud_project)
        return bool(self._api_key)

    def select_key(self, api_key: str) -> None:
        """Select the API key used for subsequent calls.

        Raises:
            ValueError: If the key is blank.
        """
        api_key = api_key.strip()
        if not api_key:
            raise ValueError("API key cannot be empty")
        self._api_key = api_key
        logger.info("API key selected")

    def make_client(self) -> genai.Client:
        """Create a fresh client so the latest selected key is always used."""
        if self.use_vertex:
            return genai.Client(
                vertexai=True,
                project=self._settings.google_cloud_project,
                location=self._settings.google_cloud_location,
            )
        return genai.Client(api_key=self._api_key)
