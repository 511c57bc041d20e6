"""
TableTarget model identifying the destination table of an insert.
"""

from pydantic import BaseModel, field_validator

from bqloader.utils.validation import validate_dataset_id, validate_table_id


class TableTarget(BaseModel):
    """
    Two-part destination namespace: dataset (container) and table.

    The project is a property of the client, not of the target.
    """

    dataset_id: str
    table_id: str

    @field_validator("dataset_id")
    @classmethod
    def check_dataset_id(cls, v):
        return validate_dataset_id(v, "dataset_id")

    @field_validator("table_id")
    @classmethod
    def check_table_id(cls, v):
        return validate_table_id(v, "table_id")

    def __str__(self) -> str:
        return f"{self.dataset_id}.{self.table_id}"

    class Config:
        frozen = True
