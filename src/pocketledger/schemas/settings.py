"""User preference schemas."""

from pydantic import BaseModel, Field, field_validator


class UserSettingsResponse(BaseModel):
    active_currency: str = Field(description="Currency new budgets and reports use")


class UserSettingsUpdateRequest(BaseModel):
    active_currency: str = Field(
        ..., min_length=3, max_length=3, pattern=r"^[A-Za-z]{3}$", description="ISO currency code"
    )

    @field_validator("active_currency")
    @classmethod
    def currency_upper(cls, v: str) -> str:
        return v.upper()
