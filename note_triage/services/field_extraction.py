import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from note_triage.domain.chunk import Chunk, ChunkType
from note_triage.domain.extracted_field import ExtractedField, FieldCategory
from note_triage.shared.config import MAX_FIELD_LABEL_LENGTH, MAX_FIELD_VALUE_LENGTH
from note_triage.shared.text import normalize_field_text

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 0.95

ICD10_PATTERN = re.compile(r"\b([A-TV-Z]\d{2}(?:\.\d{1,4})?)\b")
CPT_PATTERN = re.compile(r"\b(\d{5})\b")

VITAL_PATTERNS = [
    ("Blood Pressure", re.compile(r"\b(?:BP|blood pressure)[:\s]*(\d{2,3}/\d{2,3}(?:\s*mmHg)?)", re.IGNORECASE), "mmHg"),
    ("Heart Rate", re.compile(r"\b(?:HR|heart rate|pulse)[:\s]*(\d{2,3}(?:\s*bpm)?)", re.IGNORECASE), "bpm"),
    ("Respiratory Rate", re.compile(r"\b(?:RR|respiratory rate|resp rate)[:\s]*(\d{1,2}(?:\s*/min)?)", re.IGNORECASE), "/min"),
    ("Temperature", re.compile(r"\b(?:Temp|temperature)[:\s]*(\d{2,3}(?:\.\d)?\s*(?:°?[FC]\b|degrees)?)", re.IGNORECASE), "°F"),
    ("Oxygen Saturation", re.compile(r"\b(?:SpO2|O2 sat|oxygen sat(?:uration)?)[:\s]*(\d{2,3}%?)", re.IGNORECASE), "%"),
    ("Weight", re.compile(r"\b(?:Wt|weight)[:\s]*(\d{1,3}(?:\.\d)?\s*(?:kg|lbs?|pounds)?)", re.IGNORECASE), "kg"),
    ("BMI", re.compile(r"\bBMI[:\s]*(\d{1,2}(?:\.\d)?)", re.IGNORECASE), "kg/m²"),
    ("Pain Score", re.compile(r"\b(?:pain score|pain level|pain)[:\s]+(\d{1,2}(?:/10)?)", re.IGNORECASE), "/10"),
    ("GCS", re.compile(r"\b(?:GCS|Glasgow)[:\s]*(\d{1,2}(?:/15)?)", re.IGNORECASE), "/15"),
]

# (label, pattern, unit, reference range)
LAB_PATTERNS = [
    ("WBC", re.compile(r"\bWBC[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "K/uL", "4.5-11.0"),
    ("Hemoglobin", re.compile(r"\b(?:Hgb|Hb|hemoglobin)[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "g/dL", "12-17"),
    ("Hematocrit", re.compile(r"\b(?:HCT|hematocrit)[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "%", "36-50"),
    ("Platelets", re.compile(r"\b(?:Plt|platelets)[:\s]*(\d+)", re.IGNORECASE), "K/uL", "150-400"),
    ("Sodium", re.compile(r"\b(?:Na|sodium)[:\s]*(\d+)", re.IGNORECASE), "mEq/L", "136-145"),
    ("Potassium", re.compile(r"\b(?:K|potassium)[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "mEq/L", "3.5-5.0"),
    ("Chloride", re.compile(r"\b(?:Cl|chloride)[:\s]*(\d+)", re.IGNORECASE), "mEq/L", "98-106"),
    ("CO2", re.compile(r"\bCO2[:\s]*(\d+)", re.IGNORECASE), "mEq/L", "23-29"),
    ("BUN", re.compile(r"\bBUN[:\s]*(\d+)", re.IGNORECASE), "mg/dL", "7-20"),
    ("Creatinine", re.compile(r"\b(?:Cr|creatinine)[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "mg/dL", "0.7-1.3"),
    ("Glucose", re.compile(r"\b(?:glucose|BG)[:\s]*(\d+)", re.IGNORECASE), "mg/dL", "70-100"),
    ("AST", re.compile(r"\bAST[:\s]*(\d+)", re.IGNORECASE), "U/L", "10-40"),
    ("ALT", re.compile(r"\bALT[:\s]*(\d+)", re.IGNORECASE), "U/L", "7-56"),
    ("Total Bilirubin", re.compile(r"\b(?:T\.? ?Bili|total bilirubin|Bili)[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "mg/dL", "0.1-1.2"),
    ("Albumin", re.compile(r"\balbumin[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "g/dL", "3.5-5.0"),
    ("INR", re.compile(r"\bINR[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "", "0.8-1.1"),
    ("PTT", re.compile(r"\b(?:PTT|aPTT)[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "seconds", "25-35"),
    ("Troponin", re.compile(r"\b(?:troponin|TnI|TnT)[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "ng/mL", "<0.04"),
    ("BNP", re.compile(r"\bBNP[:\s]*(\d+)", re.IGNORECASE), "pg/mL", "<100"),
    ("TSH", re.compile(r"\bTSH[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "mIU/L", "0.4-4.0"),
    ("CRP", re.compile(r"\bCRP[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "mg/L", "<3.0"),
    ("Lactate", re.compile(r"\blactate[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE), "mmol/L", "0.5-2.0"),
    ("GFR", re.compile(r"\b(?:GFR|eGFR)[:\s]*(\d+)", re.IGNORECASE), "mL/min", ">90"),
]

MEDICATION_PATTERN = re.compile(
    r"\b([A-Za-z][a-zA-Z]{2,})\s+(\d+(?:\.\d+)?)\s*(mg|mcg|g|units?|mL)\b(?!/)"
    r"((?:\s+(?:PO|IV|IM|SQ|SC|SL|PR|topical|inhaled))?"
    r"(?:\s+(?:daily|BID|TID|QID|q\d+h?|PRN|once|twice|at bedtime|HS))?)",
    re.IGNORECASE,
)

TEMPORAL_PATTERNS = [
    ("Duration", re.compile(r"\b(?:for|x)\s*(\d+)\s*(days?|weeks?|months?|years?)\b", re.IGNORECASE)),
    ("Onset", re.compile(r"\b(?:started|began|onset)\s*(\d+)\s*(days?|weeks?|months?|years?|hours?)\s*(?:ago|prior)", re.IGNORECASE)),
    ("Timeline", re.compile(r"\b(today|yesterday|this morning|last night|earlier today|\d+\s*(?:days?|weeks?|months?)\s*ago)\b", re.IGNORECASE)),
    ("Hospital Day", re.compile(r"\b(?:HD|hospital day|post-op day|POD)\s*#?(\d+)", re.IGNORECASE)),
]

PROVIDER_PATTERNS = [
    re.compile(r"\b(?:Dr\.?|Doctor)\s+([A-Z][a-z]+(?:\s[A-Z][a-z]+)?)"),
    re.compile(r"\b(?:attending|resident|fellow)[:\s]+([A-Z][a-z]+(?:\s[A-Z][a-z]+)?)"),
]

SOCIAL_HISTORY_PATTERNS = [
    ("Smoking", re.compile(r"\b((?:current|former|never)\s*smoker|\d+\s*(?:pack[- ]?years?|ppd)|tobacco)\b", re.IGNORECASE)),
    ("Alcohol", re.compile(r"\b((?:social|occasional|heavy)\s*(?:alcohol|drinker|ETOH)|denies\s*(?:alcohol|ETOH))\b", re.IGNORECASE)),
    ("Drugs", re.compile(r"\b((?:denies|admits|history of)\s*(?:illicit|recreational|IV)?\s*drug\s*(?:use|abuse)?)", re.IGNORECASE)),
]

FAMILY_HISTORY_PATTERNS = [
    ("Family History", re.compile(r"\b(?:family history|FHx?)[:\s]*(?:of\s*)?([^\n.]+)", re.IGNORECASE)),
    ("Mother", re.compile(r"\bmother[:\s]*(?:with|has|had)?\s*([^\n,]+)", re.IGNORECASE)),
    ("Father", re.compile(r"\bfather[:\s]*(?:with|has|had)?\s*([^\n,]+)", re.IGNORECASE)),
]

DIAGNOSIS_PATTERN = re.compile(r"\b(?:dx|diagnosis|impression)[:\s]+([^\n]+)", re.IGNORECASE)
PROCEDURE_PATTERN = re.compile(r"\b(?:procedures?|performed|intervention)[:\s]+([^\n]+)", re.IGNORECASE)
PROBLEM_PATTERN = re.compile(r"\b(?:problem list|active problems|diagnoses)[:\s]+([^\n]+)", re.IGNORECASE)
ALLERGY_PATTERNS = [
    re.compile(r"\b(?:allerg(?:y|ies)|NKDA|no known drug allergies|NKA)\b[:\s]*([^\n]+)?", re.IGNORECASE),
    re.compile(r"\b(?:allergic to|adverse reaction to)[:\s]*([^\n,]+)", re.IGNORECASE),
]
DATE_PATTERNS = [
    re.compile(r"\b(\d{1,2}/\d{1,2}/\d{2,4}(?:\s+\d{1,2}:\d{2}(?:\s*(?:AM|PM))?)?)\b"),
    re.compile(r"\b(\d{4}-\d{2}-\d{2}(?:T\d{2}:\d{2}(?::\d{2})?)?)\b"),
    re.compile(r"\b((?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{1,2},?\s*\d{4})\b", re.IGNORECASE),
]
KEY_VALUE_PATTERN = re.compile(r"([A-Za-z][A-Za-z /]+):[ \t]*([^\n]+)")


def check_abnormal(value: float, normal_range: str) -> Optional[bool]:
    """ True/False against a "<X", ">X" or "X-Y" reference range, None if unparseable. """
    if not normal_range:
        return None

    try:
        if normal_range.startswith("<"):
            return value >= float(normal_range[1:])
        if normal_range.startswith(">"):
            return value <= float(normal_range[1:])

        low, high = (float(part.strip()) for part in normal_range.split("-"))
    except ValueError:
        return None
    return value < low or value > high


class FieldExtractionService:
    """
    Pulls structured facts (vitals, labs, medications, codes, dates, ...) out of
    chunk text. Purely additive: extraction never influences labeling.
    """

    def extract_fields(self, chunk: Chunk) -> List[ExtractedField]:
        extractor = _ChunkFieldCollector(chunk)

        for match in ICD10_PATTERN.finditer(chunk.text):
            extractor.add(FieldCategory.ICD_CODE, "ICD-10 Code", match.group(1), 0.85, {"codeType": "ICD-10"})

        for match in CPT_PATTERN.finditer(chunk.text):
            code = match.group(1)
            # Years and zip codes look like CPT codes; keep the E/M range and category codes
            if code.startswith("99") or code.startswith("0"):
                extractor.add(FieldCategory.CPT_CODE, "CPT Code", code, 0.75, {"codeType": "CPT"})

        for label, pattern, unit in VITAL_PATTERNS:
            for match in pattern.finditer(chunk.text):
                extractor.add(FieldCategory.VITAL_SIGNS, label, match.group(1).strip(), 0.80, {"unit": unit})

        for label, pattern, unit, normal_range in LAB_PATTERNS:
            for match in pattern.finditer(chunk.text):
                extractor.add(
                    FieldCategory.LAB_VALUE,
                    label,
                    match.group(1),
                    0.78,
                    {
                        "unit": unit,
                        "normalRange": normal_range,
                        "isAbnormal": check_abnormal(float(match.group(1)), normal_range),
                    },
                )

        for match in MEDICATION_PATTERN.finditer(chunk.text):
            name, dose, unit, frequency = match.groups()
            frequency = (frequency or "").strip()
            value = f"{dose} {unit} {frequency}".strip()
            extractor.add(
                FieldCategory.MEDICATION,
                name,
                value,
                0.70,
                {"dose": dose, "unit": unit, "frequency": frequency or None},
            )

        for label, pattern in TEMPORAL_PATTERNS:
            for match in pattern.finditer(chunk.text):
                extractor.add(FieldCategory.TEMPORAL, label, match.group(0).strip(), 0.65)

        for pattern in PROVIDER_PATTERNS:
            for match in pattern.finditer(chunk.text):
                if len(match.group(1)) > 2:
                    extractor.add(FieldCategory.PROVIDER, "Provider", match.group(1).strip(), 0.60)

        for label, pattern in SOCIAL_HISTORY_PATTERNS:
            for match in pattern.finditer(chunk.text):
                extractor.add(FieldCategory.SOCIAL_HISTORY, label, match.group(0).strip(), 0.65)

        for label, pattern in FAMILY_HISTORY_PATTERNS:
            for match in pattern.finditer(chunk.text):
                value = match.group(1).strip()
                if len(value) > 2:
                    extractor.add(FieldCategory.FAMILY_HISTORY, label, value[:100], 0.60)

        for match in DIAGNOSIS_PATTERN.finditer(chunk.text):
            value = match.group(1).strip()
            if 3 < len(value) < 200:
                extractor.add(FieldCategory.DIAGNOSIS, "Diagnosis", value, 0.68)

        procedure = PROCEDURE_PATTERN.search(chunk.text)
        if procedure and len(procedure.group(1).strip()) > 3:
            extractor.add(FieldCategory.PROCEDURE, "Procedure", procedure.group(1).strip(), 0.65)

        problem = PROBLEM_PATTERN.search(chunk.text)
        if problem:
            extractor.add(FieldCategory.PROBLEM, "Problem List", problem.group(1).strip(), 0.60)

        for pattern in ALLERGY_PATTERNS:
            for match in pattern.finditer(chunk.text):
                value = (match.group(1) or match.group(0)).strip()
                if len(value) > 2:
                    extractor.add(FieldCategory.ALLERGY, "Allergies", value[:100], 0.82)

        for pattern in DATE_PATTERNS:
            for match in pattern.finditer(chunk.text):
                extractor.add(FieldCategory.DATE_TIME, "Date", match.group(1), 0.70)

        self._extract_key_values(chunk, extractor)
        return extractor.fields

    @staticmethod
    def _extract_key_values(chunk: Chunk, extractor: "_ChunkFieldCollector") -> None:
        for match in KEY_VALUE_PATTERN.finditer(chunk.text):
            label = match.group(1).strip()
            value = match.group(2).strip()
            if not (2 <= len(label) <= MAX_FIELD_LABEL_LENGTH and 2 <= len(value) <= 200):
                continue

            # Skip values a more specific extractor already captured
            prefix = value.lower()[:20]
            if any(prefix in f.value.lower() or f.value.lower()[:20] in value.lower() for f in extractor.fields):
                continue
            extractor.add(FieldCategory.KEY_VALUE, label, value, 0.55)

    def extract_document_fields(self, chunks: Iterable[Chunk]) -> List[ExtractedField]:
        fields: List[ExtractedField] = []
        for chunk in chunks:
            fields.extend(self.extract_fields(chunk))
        deduped = dedupe_extracted_fields(fields)
        logger.debug("Extracted %d fields (%d after dedupe)", len(fields), len(deduped))
        return deduped


class _ChunkFieldCollector:
    """ Accumulates fields for one chunk, applying the chunk-type confidence boost. """

    def __init__(self, chunk: Chunk):
        self.chunk = chunk
        if chunk.type == ChunkType.SECTION_HEADER:
            self.boost = 0.10
        elif chunk.is_critical:
            self.boost = 0.08
        else:
            self.boost = 0.0
        self.fields: List[ExtractedField] = []

    def add(
        self,
        category: FieldCategory,
        label: str,
        value: str,
        base_confidence: float,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.fields.append(
            ExtractedField(
                id=f"{self.chunk.id}-{category.value}-{len(self.fields)}",
                category=category,
                label=label[:MAX_FIELD_LABEL_LENGTH],
                value=value[:MAX_FIELD_VALUE_LENGTH],
                confidence=min(base_confidence + self.boost, MAX_CONFIDENCE),
                source_chunk_id=self.chunk.id,
                metadata=metadata or {},
            )
        )


def dedupe_extracted_fields(fields: Iterable[ExtractedField]) -> List[ExtractedField]:
    """ One field per (category, label, value); the most confident instance wins. """
    deduped: Dict[tuple, ExtractedField] = {}
    for extracted in fields:
        key = (
            FieldCategory(extracted.category),
            normalize_field_text(extracted.label),
            normalize_field_text(extracted.value),
        )
        existing = deduped.get(key)
        if existing is None or extracted.confidence > existing.confidence:
            deduped[key] = extracted
    return list(deduped.values())


def group_fields_by_category(fields: Iterable[ExtractedField]) -> Dict[FieldCategory, List[ExtractedField]]:
    grouped: Dict[FieldCategory, List[ExtractedField]] = {}
    for extracted in fields:
        grouped.setdefault(extracted.category, []).append(extracted)
    return grouped


def get_abnormal_labs(fields: Iterable[ExtractedField]) -> List[ExtractedField]:
    return [
        f for f in fields
        if f.category == FieldCategory.LAB_VALUE and f.metadata.get("isAbnormal") is True
    ]


def get_medication_list(fields: Iterable[ExtractedField]) -> List[Dict[str, Optional[str]]]:
    return [
        {
            "name": f.label,
            "dose": f.metadata.get("dose", ""),
            "unit": f.metadata.get("unit", ""),
            "frequency": f.metadata.get("frequency"),
        }
        for f in fields
        if f.category == FieldCategory.MEDICATION
    ]
