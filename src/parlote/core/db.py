from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class MongoModel(BaseModel):
    """Base for documents stored in MongoDB; ``id`` maps to ``_id``."""

    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
