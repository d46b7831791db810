"""
Configuration loader — reads a profile YAML into the Profile model.

Resolution order for the profile file:
    --config PATH  >  $DEVBOX_CONFIG  >  ~/.config/devbox/profile.yml  >  bundled default
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from devbox.core.data import DEFAULT_PROFILE_PATH
from devbox.core.errors import DevboxError
from devbox.core.models.profile import Profile

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DEVBOX_CONFIG"
USER_PROFILE_RELPATH = Path(".config") / "devbox" / "profile.yml"


class ConfigError(DevboxError):
    """Raised when the profile is missing or invalid."""


def find_profile_file(
    explicit: Path | None = None,
    home: Path | None = None,
) -> Path:
    """Pick the profile file to load.

    An explicit path is returned as-is (even if missing, so the loader
    reports it). Otherwise the first existing candidate wins, falling
    back to the bundled default profile.
    """
    if explicit is not None:
        return explicit

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    user_file = (home or Path.home()) / USER_PROFILE_RELPATH
    if user_file.is_file():
        return user_file

    return DEFAULT_PROFILE_PATH


def load_profile(path: Path | None = None) -> Profile:
    """Load and validate a provisioning profile.

    Args:
        path: Explicit profile path. If None, see ``find_profile_file``.

    Returns:
        Validated Profile model.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    path = find_profile_file(path)

    if not path.is_file():
        raise ConfigError(f"Profile not found: {path}")

    logger.debug("Loading profile from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "profile" key or be flat
    profile_data = data.get("profile", data)

    try:
        profile = Profile.model_validate(profile_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid profile {path}: {e}") from e

    logger.info(
        "Loaded profile '%s' (%d required commands, %d packages)",
        profile.name,
        len(profile.required_commands),
        len(profile.required_packages),
    )
    return profile
