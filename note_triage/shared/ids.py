import hashlib


def generate_document_id(content: str, source: str) -> str:
    """
    Generates a deterministic ID based on content and source.
    Including the source keeps identical texts from different origins apart.
    """
    payload = f"{source}:{content}"
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def generate_chunk_id(text: str, start_offset: int) -> str:
    """ Stable chunk ID: re-chunking the same text yields the same IDs. """
    payload = f"{start_offset}:{text}"
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()[:12]
