from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Request bodies arrive camelCased from the web client."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
