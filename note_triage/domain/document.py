from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional


@dataclass
class ClinicalDocument:
    id: str
    text: str
    source: str
    created_at: datetime = field(default_factory=datetime.now)
    note_type: Optional[str] = None
    service: Optional[str] = None
    parsed_dates: List[date] = field(default_factory=list)

    @property
    def effective_date(self) -> date:
        if self.parsed_dates:
            return max(self.parsed_dates)

        return self.created_at.date()
