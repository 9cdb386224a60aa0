from typing import List

from pydantic import BaseModel, ConfigDict

from chat_client.schemas.chat import UnsignedInt


class ModelObject(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    # Always "model" on the public API
    object: str
    created: UnsignedInt
    owned_by: str


class ListModelsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    object: str
    data: List[ModelObject]
