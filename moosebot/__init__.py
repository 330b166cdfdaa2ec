"""moosebot: relay moose from the moose2 service to IRC."""

from .constants import APP_VERSION as __version__  # noqa: F401
