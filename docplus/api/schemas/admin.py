from pydantic import BaseModel, ConfigDict, Field


class ChangeAvailabilityRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doctor_id: int = Field(alias="docId")
