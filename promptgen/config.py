from __future__ import annotations

import os
from typing import Dict, Optional

from dotenv import load_dotenv

from .exceptions import CredentialMissingError

# Load environment variables from .env file if present
load_dotenv()

DEFAULT_TIMEOUT = 60  # seconds per HTTP request
DEFAULT_IMAGE_OUT = "image.jpg"

# Alternative service catalog (JSON) instead of the packaged one
SERVICES_ENV_VAR = "PROMPTGEN_SERVICES"

# service id -> credential env var
CREDENTIAL_ENV_VARS: Dict[str, str] = {
    "hf": "HF_TOKEN",
    "openai": "OPENAI_API_KEY",
    "together": "TOGETHER_API_KEY",
}


def get_credential(env_var: str, provider_name: str) -> str:
    """Read an API credential from the environment.

    Raises:
        CredentialMissingError: If the variable is unset or empty
    """
    key = os.environ.get(env_var, "").strip()
    if not key:
        raise CredentialMissingError(provider_name, env_var)
    return key


def services_override_path() -> Optional[str]:
    return os.environ.get(SERVICES_ENV_VAR) or None
