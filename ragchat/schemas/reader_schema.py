"""Reader document and analysis schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

AnalysisKind = Literal["summary", "deep_reading", "mind_map"]


class ReadingFileInfo(BaseModel):
    """Reader document stored for a client."""

    model_config = ConfigDict(frozen=True)

    filename: str
    original_filename: str
    type: str
    size: int
    created_at: datetime
