from __future__ import annotations

from datetime import date
from typing import Sequence

from pydantic import BaseModel, Field


class ProgramOption(BaseModel):
    id: str
    name: str
    description: str = ""
    incentive: str = ""
    icon: str = "dashicons-awards"


class InstanceContext(BaseModel):
    id: int = 0
    today: date = Field(default_factory=date.today, description="Resolves the 'today' date token")
    programs: Sequence[ProgramOption] | None = None
    client_script_url: str | None = None


__all__ = ["InstanceContext", "ProgramOption"]
