from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """
    Upstream payload schema.

    Unknown fields and mismatched types (e.g. "123" for an int) fail
    validation instead of being coerced, so upstream shape drift is caught.
    """

    model_config = ConfigDict(extra="forbid", strict=True)
