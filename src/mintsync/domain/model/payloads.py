"""Per-entity payload schemas checked before changes reach the store."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, ClassVar, Final

from pydantic import BaseModel, ConfigDict, ValidationError

from mintsync.domain.errors import ChangePayloadError

from .enums import ChangeOperation, EntityType

if TYPE_CHECKING:
    from .change import Change


class EntityPayload(BaseModel):
    """Fields are optional so partial UPDATE payloads validate on their own."""

    model_config = ConfigDict(extra="allow")

    required_on_create: ClassVar[tuple[str, ...]] = ()


class AccountPayload(EntityPayload):
    required_on_create = ("name",)

    name: str | None = None
    official_name: str | None = None
    type: str | None = None
    subtype: str | None = None
    mask: str | None = None
    balance: float | None = None
    available_balance: float | None = None
    credit_limit: float | None = None
    currency: str | None = None
    institution_id: str | None = None


class TransactionPayload(EntityPayload):
    required_on_create = ("account_id", "amount", "date")

    account_id: str | None = None
    amount: float | None = None
    date: dt.date | None = None
    description: str | None = None
    merchant_name: str | None = None
    category: str | None = None
    pending: bool | None = None
    currency: str | None = None


class BudgetPayload(EntityPayload):
    required_on_create = ("name", "amount")

    name: str | None = None
    category: str | None = None
    amount: float | None = None
    spent: float | None = None
    period: str | None = None


class GoalPayload(EntityPayload):
    required_on_create = ("name", "target_amount")

    name: str | None = None
    target_amount: float | None = None
    current_amount: float | None = None
    target_date: dt.date | None = None
    status: str | None = None


PAYLOAD_MODELS: Final[dict[EntityType, type[EntityPayload]]] = {
    EntityType.ACCOUNTS: AccountPayload,
    EntityType.TRANSACTIONS: TransactionPayload,
    EntityType.BUDGETS: BudgetPayload,
    EntityType.GOALS: GoalPayload,
}


def validate_change_payload(change: Change) -> None:
    """Raise ``ChangePayloadError`` when ``change`` carries an unusable payload."""

    if change.operation is ChangeOperation.DELETE:
        return

    model = PAYLOAD_MODELS[change.entity_type]
    payload = change.payload_dict()
    try:
        model.model_validate(payload)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
        raise ChangePayloadError(
            f"Change {change.id}: invalid {change.entity_type} payload ({fields})",
            change_id=change.id,
            entity_id=change.entity_id,
        ) from exc

    if change.operation is ChangeOperation.CREATE:
        missing = [name for name in model.required_on_create if payload.get(name) is None]
    else:
        missing = [
            name for name in model.required_on_create if name in payload and payload[name] is None
        ]
    if missing:
        raise ChangePayloadError(
            f"Change {change.id}: {change.entity_type} payload requires {', '.join(missing)}",
            change_id=change.id,
            entity_id=change.entity_id,
        )
