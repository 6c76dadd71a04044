from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; input accepts either."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class StepFailure(CamelModel):
    step: str
    error: str


class Message(CamelModel):
    message: str
