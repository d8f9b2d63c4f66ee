from typing import Optional
from pydantic import BaseModel, ConfigDict


class JobLimit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    launcher: Optional[str] = None
    concurrent_jobs: int
