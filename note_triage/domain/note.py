from dataclasses import dataclass
from typing import Optional


@dataclass
class ParsedNote:
    id: str
    note_type: str
    text: str
    start_offset: int
    end_offset: int
    date_time: Optional[str] = None
