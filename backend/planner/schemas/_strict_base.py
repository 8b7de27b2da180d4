"""Request schemas reject unknown fields instead of silently dropping them."""

from pydantic import BaseModel, ConfigDict


class StrictRequestModel(BaseModel):
    """Base for request bodies: unknown keys are a 422, assignments are re-validated."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
