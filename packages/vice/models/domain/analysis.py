from pydantic import BaseModel, ConfigDict

# Analyses in these states are being torn down and no longer count as running
TERMINAL_STATUSES = frozenset({"Failed", "Completed", "Canceled"})


class Analysis(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: str
