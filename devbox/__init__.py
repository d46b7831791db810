"""devbox — provision a developer workstation in one ordered run."""

__version__ = "0.1.0"
