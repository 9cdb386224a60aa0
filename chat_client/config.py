import os
from typing import Optional

from pydantic import BaseModel, ConfigDict

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT_SECONDS = 600.0


class ClientSettings(BaseModel):
    """Connection settings shared by the sync and async clients.

    Explicit constructor arguments on a client take precedence over these.
    """

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    org_id: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Read settings from `OPENAI_*` environment variables.

        - OPENAI_API_KEY: bearer token (empty means unset)
        - OPENAI_ORG_ID: sent as the OpenAI-Organization header
        - OPENAI_BASE_URL: defaults to the public API; trailing "/" is dropped
        - OPENAI_TIMEOUT_SECONDS: non-streaming timeout, invalid values fall
          back to the default
        """
        try:
            timeout_seconds = float(
                os.getenv("OPENAI_TIMEOUT_SECONDS", "600") or DEFAULT_TIMEOUT_SECONDS
            )
        except ValueError:
            timeout_seconds = DEFAULT_TIMEOUT_SECONDS
        return cls(
            api_key=os.getenv("OPENAI_API_KEY") or None,
            org_id=os.getenv("OPENAI_ORG_ID") or None,
            base_url=(os.getenv("OPENAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            timeout_seconds=timeout_seconds,
        )
