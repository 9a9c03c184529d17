# src/tasknag/browser/models.py

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

MAX_ACTIONS = 5


@dataclass(slots=True)
class BrowserAction:
    """One URL to open when a level-3 reminder fires."""

    id: str
    label: str
    url: str
    enabled: bool = True
    order: int = 0
    created_at: datetime | None = None

    @classmethod
    def new(cls, label: str, url: str, order: int) -> BrowserAction:
        return cls(
            id=str(uuid.uuid4()),
            label=label,
            url=url,
            enabled=True,
            order=order,
            created_at=datetime.now(timezone.utc),
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> BrowserAction:
        if not isinstance(raw, dict):
            raise ConfigurationError(f"browser action must be an object, got {type(raw).__name__}")

        url = raw.get("url")
        if not isinstance(url, str):
            raise ConfigurationError("browser action is missing a url")

        try:
            order = int(raw.get("order", 0) or 0)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"browser action order is not an integer: {raw.get('order')!r}") from e

        created_raw = raw.get("createdAt", raw.get("created_at"))
        created_at: datetime | None = None
        if isinstance(created_raw, str) and created_raw:
            try:
                created_at = datetime.fromisoformat(created_raw)
            except ValueError:
                logger.debug("Ignoring unparsable action createdAt=%r", created_raw)

        return cls(
            id=str(raw.get("id") or uuid.uuid4()),
            label=str(raw.get("label") or ""),
            url=url,
            enabled=bool(raw.get("enabled", True)),
            order=order,
            created_at=created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "url": self.url,
            "enabled": self.enabled,
            "order": self.order,
        }
        if self.created_at is not None:
            out["createdAt"] = self.created_at.isoformat()
        return out


@dataclass(slots=True)
class BrowserActionSettings:
    """
    Per-task browser action set.

    Storage shape: {"enabled": bool, "actions": [{id, label, url, enabled, order}]}.
    At most MAX_ACTIONS entries are kept.
    """

    enabled: bool = False
    actions: list[BrowserAction] = field(default_factory=list)

    def add_action(self, action: BrowserAction) -> bool:
        if len(self.actions) >= MAX_ACTIONS:
            logger.debug("Action set full (%d); ignoring %s", MAX_ACTIONS, action.label)
            return False
        self.actions.append(action)
        # sort() is stable: equal orders keep insertion order.
        self.actions.sort(key=lambda a: a.order)
        return True

    def remove_action(self, action_id: str) -> None:
        self.actions = [a for a in self.actions if a.id != action_id]

    def reorder_action(self, action_id: str, new_order: int) -> None:
        for a in self.actions:
            if a.id == action_id:
                a.order = int(new_order)
                self.actions.sort(key=lambda x: x.order)
                return

    def enabled_actions(self) -> list[BrowserAction]:
        if not self.enabled:
            return []
        return sorted((a for a in self.actions if a.enabled), key=lambda a: a.order)

    @classmethod
    def from_json(cls, raw: str | None) -> BrowserActionSettings:
        if raw is None or not raw.strip():
            return cls(enabled=False, actions=[])
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"browser actions are not valid JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> BrowserActionSettings:
        if not isinstance(data, dict):
            raise ConfigurationError("browser actions must be a JSON object")

        raw_actions = data.get("actions") or []
        if not isinstance(raw_actions, list):
            raise ConfigurationError("browser actions 'actions' must be a list")

        settings = cls(enabled=bool(data.get("enabled", False)), actions=[])
        for item in raw_actions:
            if not settings.add_action(BrowserAction.from_dict(item)):
                logger.warning("Dropping browser actions beyond the limit of %d", MAX_ACTIONS)
                break
        return settings

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "actions": [a.to_dict() for a in self.actions]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


@dataclass(slots=True, frozen=True)
class URLValidationResult:
    is_valid: bool
    protocol: str
    host: str
    normalized_url: str = ""
    error: str | None = None
    # Rejected for safety (script injection, blocked scheme) rather than format.
    security: bool = False

    @classmethod
    def valid(cls, protocol: str, host: str, normalized_url: str) -> URLValidationResult:
        return cls(is_valid=True, protocol=protocol, host=host, normalized_url=normalized_url)

    @classmethod
    def invalid(cls, error: str, *, security: bool = False) -> URLValidationResult:
        return cls(is_valid=False, protocol="invalid", host="", error=error, security=security)


@dataclass(slots=True, frozen=True)
class URLPreview:
    url: str
    domain: str
    title: str
    favicon_url: str | None = None
    description: str | None = None
