from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator


class ConditionRequest(BaseModel):
    password: Optional[SecretStr] = None
    pepper: Optional[str] = ""
    existing_salt: Optional[str] = None
    rounds: Optional[int] = None
    existing_preimage: Optional[str] = Field(default=None, repr=False)
    permanent_salt: bool = True

    @field_validator("pepper")
    @classmethod
    def _pepper_or_empty(cls, value: Optional[str]) -> str:
        return value or ""


class SaltMetadata(BaseModel):
    value: Optional[str] = Field(default=None, repr=False)
    is_random: bool = False
    rounds: Optional[int] = None


class ConditionResult(BaseModel):
    condition_hex: str
    fulfillment_hex: str = Field(repr=False)
    preimage_hex: str = Field(repr=False)
    salt_metadata: SaltMetadata = Field(default_factory=SaltMetadata)
    random_secret: bool = False
    preimage_length: int
    preimage_cost_drops: int
    fee_drops: int


class FulfillmentResult(BaseModel):
    fulfillment_hex: str
    preimage_size: int
    fee_drops: int
