"""Bundled static data (the default provisioning profile)."""

from pathlib import Path

DATA_DIR = Path(__file__).parent
DEFAULT_PROFILE_PATH = DATA_DIR / "profile.yml"
