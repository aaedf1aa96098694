from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

REQUIRED_DEPOSIT_FIELDS = ("amount", "external_id", "payer")


class DepositRequest(BaseModel):
    """Deposit payload accepted from the browser."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, allow_inf_nan=False)

    # Strict so JSON booleans and numeric strings are rejected, not coerced
    amount: StrictInt | StrictFloat
    external_id: str = Field(min_length=1)
    payer: dict[str, Any]

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, value: int | float) -> int | float:
        if value <= 0:
            raise ValueError("amount must be greater than zero")
        return value


class InstapayDepositPayload(BaseModel):
    """Body sent to ``POST /api/payments/deposit``."""

    amount: int | float
    external_id: str
    client_callback_url: str = Field(serialization_alias="clientCallbackUrl")
    payer: dict[str, Any]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class PixCharge(BaseModel):
    """The subset of Instapay's deposit response returned to the browser."""

    model_config = ConfigDict(extra="ignore")

    transaction_id: Any = None
    qr_code_image: Any = None
    pix_code: Any = None
    status: Any = None


__all__ = [
    "REQUIRED_DEPOSIT_FIELDS",
    "DepositRequest",
    "InstapayDepositPayload",
    "PixCharge",
]
