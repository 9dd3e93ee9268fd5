from typing import List

from pydantic import BaseModel, Field


class ImportReport(BaseModel):
    added: List[str] = Field(default_factory=list)
    duplicates: List[str] = Field(default_factory=list)
    unnamed: List[str] = Field(default_factory=list)
    failed_writes: List[str] = Field(default_factory=list)

    @property
    def added_count(self) -> int:
        return len(self.added)
