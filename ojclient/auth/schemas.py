from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CurrentUser(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    id: str = Field(
        ..., validation_alias=AliasChoices("id", "_id"), examples=["64f1c2"]
    )
    username: Optional[str] = Field(default=None, max_length=50, examples=["algo_champ"])
    email: Optional[str] = Field(default=None, examples=["user@example.com"])
