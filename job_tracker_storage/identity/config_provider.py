"""
Config file identity provider.

Reads the signed-in identity from a local YAML settings file for
development and offline-first usage.
"""

from pathlib import Path
from typing import Any

import yaml

from .types import UserIdentity


class ConfigFileIdentityProvider:
    """Identity provider that reads from local config.

    Configuration in ~/.job_tracker/settings.yaml:

    ```yaml
    identity:
      user_id: "user-abc123"
      display_name: "Alice"
      email: "alice@example.com"
    ```

    If the identity section is missing, the offline placeholder
    identity is returned.
    """

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or Path.home() / ".job_tracker" / "settings.yaml"
        self._identity: UserIdentity | None = None

    def get_current_identity(self) -> UserIdentity:
        """Get the identity from config, cached after the first read."""
        if self._identity is not None:
            return self._identity

        identity_config = self._load_config().get("identity") or {}
        user_id = identity_config.get("user_id")
        if not user_id:
            self._identity = UserIdentity.offline()
        else:
            self._identity = UserIdentity(
                user_id=str(user_id),
                display_name=identity_config.get("display_name"),
                email=identity_config.get("email"),
            )
        return self._identity

    def sign_out(self) -> None:
        """Clear the cached identity. The config file is not modified."""
        self._identity = None

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}
        try:
            return yaml.safe_load(self.config_path.read_text()) or {}
        except yaml.YAMLError:
            return {}
