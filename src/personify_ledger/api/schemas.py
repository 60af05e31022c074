from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AccountOut(BaseModel):
    account_id: int
    display_name: str
    balance: Decimal
    last_updated: Optional[datetime] = None


class AccountListOut(BaseModel):
    success: bool = True
    accounts: List[AccountOut]


class TransferRecordOut(BaseModel):
    transfer_id: int
    from_account: int
    to_account: int
    amount: Decimal
    status: str
    error_message: Optional[str] = None
    timestamp: Optional[datetime] = None


class TransferIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_account_id: Optional[int] = Field(None, alias="fromAccountId", examples=[1])
    to_account_id: Optional[int] = Field(None, alias="toAccountId", examples=[2])
    amount: Optional[Decimal] = Field(None, examples=["100.00"])
    # the original demo client sends simulateError
    simulate_failure: bool = Field(
        False,
        validation_alias=AliasChoices("simulateFailure", "simulateError", "simulate_failure"),
    )


class TransferOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    outcome: str
    message: str
    transfer_id: Optional[int] = Field(None, serialization_alias="transferId")
    from_balance: Optional[Decimal] = Field(None, serialization_alias="fromBalance")
    to_balance: Optional[Decimal] = Field(None, serialization_alias="toBalance")
    reason: Optional[str] = None


class SeedIn(BaseModel):
    token: str
