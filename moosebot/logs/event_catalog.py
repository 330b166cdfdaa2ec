"""Human readable templates for ``BotLogger.log_event``.

Templates live in ``event_templates.json`` beside this module, keyed as
``{"domain": {"action": "template"}}``. A file that cannot be read leaves a
single ``("app", "load_error")`` entry describing the problem so logging
keeps working with derived messages.
"""

from __future__ import annotations

import json
from importlib import resources

_RESOURCE = "event_templates.json"

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def _flatten(raw: object) -> dict[tuple[str, str], str]:
    if not isinstance(raw, dict):
        return {}
    return {
        (domain, action): template
        for domain, actions in raw.items()
        if isinstance(domain, str) and isinstance(actions, dict)
        for action, template in actions.items()
        if isinstance(action, str) and isinstance(template, str)
    }


def _read_catalog() -> dict[tuple[str, str], str]:
    source = resources.files(__package__).joinpath(_RESOURCE)
    try:
        return _flatten(json.loads(source.read_text(encoding="utf-8")))
    except FileNotFoundError:
        reason = f"{_RESOURCE} is missing"
    except (OSError, ValueError) as e:
        reason = f"{_RESOURCE} is unreadable: {e}"
    return {("app", "load_error"): reason[:200]}


def reload_event_templates() -> None:
    """Re-read the template file, replacing the module level mapping."""
    global EVENT_TEMPLATES  # noqa: PLW0603
    EVENT_TEMPLATES = _read_catalog()


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "reload_event_templates"]
