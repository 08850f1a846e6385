from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from .utils import finite_json

Role = Literal["user", "assistant", "system"]

class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)
    role: Role
    content: str

class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

class IsaTerms(_CamelModel):
    principal: float = 0.0
    rate: float = 0.0  # percent, as stored

class SnapshotSettings(_CamelModel):
    include_isa_in_net: bool = False
    start_on_monday: bool = False

class SnapshotTotals(_CamelModel):
    bank: float = 0.0
    asset: float = 0.0
    debt: float = 0.0
    passive_monthly: float = 0.0
    isa_monthly: float = 0.0
    isa_yearly: float = 0.0

class DayResult(_CamelModel):
    date: str
    total: float

class FinanceSnapshot(_CamelModel):
    currency: str = "GBP"
    banks: list[Any] = Field(default_factory=list)
    assets: list[Any] = Field(default_factory=list)
    debts: list[Any] = Field(default_factory=list)
    passive_cats: list[Any] = Field(default_factory=list)
    subscriptions: list[Any] = Field(default_factory=list)
    isa: IsaTerms = Field(default_factory=IsaTerms)
    settings: SnapshotSettings = Field(default_factory=SnapshotSettings)
    totals: SnapshotTotals = Field(default_factory=SnapshotTotals)
    recent_day_pl: list[DayResult] = Field(default_factory=list, alias="recentDayPL")

    def to_payload(self) -> dict:
        """Wire form with the tracker's camelCase keys; non-finite numbers become null."""
        return finite_json(self.model_dump(mode="json", by_alias=True))
