from pydantic import BaseModel


class InferredType(BaseModel):
    type: str
    optional: bool = False


class FieldDescriptor(BaseModel):
    name: str
    type: str
    optional: bool = False
    doc: str | None = None
