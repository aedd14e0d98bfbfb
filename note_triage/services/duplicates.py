from typing import Dict, List, Sequence, Set

from note_triage.domain.chunk import Chunk
from note_triage.shared.config import DUPLICATE_MIN_LENGTH
from note_triage.shared.text import normalize_duplicate_key


def find_duplicates(chunks: Sequence[Chunk], min_length: int = DUPLICATE_MIN_LENGTH) -> Set[str]:
    """
    Returns the IDs of every chunk whose normalized text appears more than once
    in the same document. Exact matches only; near-duplicates are not reported.
    """
    groups: Dict[str, List[str]] = {}
    for chunk in chunks:
        key = normalize_duplicate_key(chunk.text)
        if len(key) < min_length:
            continue
        groups.setdefault(key, []).append(chunk.id)

    duplicates: Set[str] = set()
    for chunk_ids in groups.values():
        if len(chunk_ids) > 1:
            duplicates.update(chunk_ids)
    return duplicates
