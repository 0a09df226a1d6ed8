from datetime import date, datetime, time
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ojclient.contest.lifecycle import ContestStatus, classify


class ContestTiming(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    title: str = ""
    start_date: Union[datetime, date, str, None] = Field(
        default=None, validation_alias=AliasChoices("startDate", "start_date")
    )
    start_time: Union[time, str, None] = Field(
        default=None, validation_alias=AliasChoices("startTime", "start_time")
    )
    duration: Union[float, str, None] = Field(
        default=90, description="Contest length in minutes"
    )

    def status(self, now: Optional[datetime] = None) -> ContestStatus:
        # Recomputed on every call; the answer moves with the clock
        return classify(self.start_date, self.start_time, self.duration, now=now)
