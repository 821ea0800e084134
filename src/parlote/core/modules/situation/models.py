"""Conversation situations (role-play scenarios)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Situation(BaseModel):
    """A role-play scenario the tutor conducts."""

    id: str = Field(..., min_length=1, description="Situation ID")
    title: str = Field(..., description="Short title shown to the learner")
    theme: str = Field("", description="One-line theme description")
    prompt: str = Field("", description="Scenario given to the model")
    links: list[str] = Field(default_factory=list, description="Suggested phrases the learner can send")
    accent: str | None = Field(None, description="Accent of the speaker in the scene")
    ambience: str | None = Field(None, description="Scene ambience")
    updated_at: datetime | None = Field(None, description="Last edit time")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SituationUpdate(BaseModel):
    """Partial update of a situation. Fields left as None keep their current value."""

    title: str | None = None
    theme: str | None = None
    prompt: str | None = None
    links: list[str] | None = None
    accent: str | None = None
    ambience: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
