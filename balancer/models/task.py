"""Task model — an immutable unit of weighted work waiting for a server."""

from pydantic import BaseModel, ConfigDict, Field


class Task(BaseModel):
    """A weighted task. Frozen once created; removed everywhere on completion."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(strict=True, description="Stable task identifier")
    weight: int = Field(strict=True, gt=0, description="Capacity units the task occupies")

    @property
    def label(self) -> str:
        return f"T{self.id}"

    def __repr__(self) -> str:
        return f"Task(id={self.id}, weight={self.weight})"
