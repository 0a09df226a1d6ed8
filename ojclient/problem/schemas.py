from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class ProblemExample(BaseModel):
    input: str = ""
    output: str = ""


class ProblemSummary(BaseModel):
    """
    A problem as returned by either problem source.
    Contest problems and standalone problems share this shape.
    """

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    title: str = ""
    description: str = ""
    difficulty: str = "Easy"
    topic: Optional[str] = None
    points: int = 100
    time_limit: float = Field(default=2, validation_alias=AliasChoices("timeLimit", "time_limit"))
    memory_limit: int = Field(default=256, validation_alias=AliasChoices("memoryLimit", "memory_limit"))
    examples: List[ProblemExample] = Field(default_factory=list)
    constraints: str = ""
    solved: bool = False

    @model_validator(mode="before")
    @classmethod
    def collect_examples(cls, data):
        # The backend sends numbered example1/example2 fields instead of a list
        if isinstance(data, dict) and "examples" not in data:
            examples = [data.get(key) for key in ("example1", "example2")]
            data = {**data, "examples": [e for e in examples if e]}
        return data

    @property
    def tags(self) -> List[str]:
        return [self.topic] if self.topic else []
