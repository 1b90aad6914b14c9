"""Role-based generation defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from . import config


@dataclass(frozen=True)
class RoleGenConfig:
    name: str
    max_new: int
    temperature: float


def resolve_role_config(role: str) -> RoleGenConfig:
    key = (role or "edit_full").strip().lower()
    table: Dict[str, RoleGenConfig] = {
        # a minimized fragment was sent: replies are small BEFORE/AFTER patches
        "edit_scoped": RoleGenConfig("edit_scoped", config.SCOPED_MAX_TOKENS, config.TEMPERATURE),
        # whole document sent: the reply may be a full document
        "edit_full": RoleGenConfig("edit_full", config.FULL_MAX_TOKENS, config.TEMPERATURE),
        "fallback": RoleGenConfig("fallback", config.SCOPED_MAX_TOKENS, config.FALLBACK_TEMP),
    }
    return table.get(key, table["edit_full"])
