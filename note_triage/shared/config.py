""" Configuration settings for the note triage engine """
from dotenv import load_dotenv
import os
load_dotenv()

# Paths
LEARNED_CORPUS_PATH = os.getenv("LEARNED_CORPUS_PATH") or "data/learned_annotations.json"

# Annotation defaults
DEFAULT_USER_ID = os.getenv("NOTE_TRIAGE_USER_ID") or "system"

# File ingestion
SUPPORTED_NOTE_EXTENSIONS = [".txt", ".md", ".pdf", ".docx"]

# Chunking
DUPLICATE_MIN_LENGTH = 50  # normalized characters; shorter repeats are not meaningful
PARAGRAPH_MIN_LENGTH = 200

# Chart splitting
MIN_NOTE_LENGTH = 50  # shorter fragments are treated as dividers/noise

# Field extraction
MAX_FIELD_LABEL_LENGTH = 40
MAX_FIELD_VALUE_LENGTH = 120

# Date Logic Settings
DATE_PREFERRED_ORDER = ['MDY', 'DMY', 'YMD'] # Supported date formats: 'YMD', 'DMY', 'MDY'
