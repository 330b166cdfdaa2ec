"""Event-style logger used by the IRC and routing layers."""

from __future__ import annotations

import logging

from ..logging_config import debug_enabled

_PREFIX_WIDTH = 24
_EVENT_WIDTH = 28


class BotLogger:
    """Log ``(domain, action)`` events with a human template and context.

    ``nick`` and ``channel`` keyword arguments go into a fixed-width prefix
    column; everything else is template input and, in DEBUG mode, is
    appended as ``key=value`` context.
    """

    def __init__(self, name: str = "moosebot") -> None:
        # No handlers here: output goes through the root logger.
        self.logger = logging.getLogger(name)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        text = human if human is not None else self.render(domain, action, kwargs)
        nick = kwargs.pop("nick", None)
        channel = kwargs.pop("channel", None)
        prefix = self.prefix(
            nick if isinstance(nick, str) else None,
            channel if isinstance(channel, str) else None,
        )
        if debug_enabled():
            event = f"{domain}_{action}".lower()
            if len(event) > _EVENT_WIDTH:
                event = event[: _EVENT_WIDTH - 1] + "…"
            msg = f"{event.ljust(_EVENT_WIDTH)} {prefix} {text}"
            if kwargs:
                msg += " (" + ", ".join(f"{k}={v}" for k, v in kwargs.items()) + ")"
        else:
            msg = f"{prefix} {text}"
        self.logger.log(level, msg, exc_info=exc_info)

    @staticmethod
    def render(domain: str, action: str, kwargs: dict[str, object]) -> str:
        # Imported late so reload_event_templates() is always honoured.
        from .event_catalog import EVENT_TEMPLATES

        template = EVENT_TEMPLATES.get((domain, action))
        if template is None:
            kwargs.setdefault("derived", True)
            return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            return template

    @staticmethod
    def prefix(nick: str | None, channel: str | None) -> str:
        who = nick or "system"
        if channel:
            who = f"{who} {channel}"
        return f"[{who.ljust(_PREFIX_WIDTH)[:_PREFIX_WIDTH]}]"


logger = BotLogger()
