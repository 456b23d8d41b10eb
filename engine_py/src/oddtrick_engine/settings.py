"""
Server settings read from the environment.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from .constants import REDEAL_DELAY_SECONDS


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    log_level: str = "info"
    reload: bool = False
    redeal_delay: float = Field(default=REDEAL_DELAY_SECONDS, ge=0, le=30)
    outbox_size: int = Field(default=64, ge=1, description="Queued frames per connection before it is dropped")
    hide_opponent_hands: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        env = os.environ if environ is None else environ
        values = {
            "host": env.get("HOST", "0.0.0.0"),
            "port": int(env.get("PORT", 8080)),
            "log_level": env.get("LOG_LEVEL", "info").lower(),
            "reload": _env_flag(env.get("RELOAD")),
            "hide_opponent_hands": _env_flag(env.get("HIDE_OPPONENT_HANDS")),
        }
        if "REDEAL_DELAY" in env:
            values["redeal_delay"] = float(env["REDEAL_DELAY"])
        if "OUTBOX_SIZE" in env:
            values["outbox_size"] = int(env["OUTBOX_SIZE"])
        return cls(**values)
