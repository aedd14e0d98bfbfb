from enum import Enum


class Label(str, Enum):
    KEEP = "KEEP"
    CONDENSE = "CONDENSE"
    REMOVE = "REMOVE"


class RemoveReason(str, Enum):
    DUPLICATE_DATA = "duplicate_data"
    COPIED_PRIOR_NOTE = "copied_prior_note"
    BOILERPLATE_TEMPLATE = "boilerplate_template"
    BILLING_ATTESTATION = "billing_attestation"
    NORMAL_ROS_EXAM = "normal_ros_exam"
    REPEATED_IMAGING = "repeated_imaging"
    REPEATED_LABS = "repeated_labs"
    IRRELEVANT_HISTORICAL = "irrelevant_historical"
    ADMINISTRATIVE_TEXT = "administrative_text"


class CondenseStrategy(str, Enum):
    ABNORMAL_ONLY = "abnormal_only"
    CHANGES_VS_PRIOR = "changes_vs_prior"
    ONE_LINE_SUMMARY = "one_line_summary"
    PROBLEM_BASED_SUMMARY = "problem_based_summary"


class LabelScope(str, Enum):
    THIS_DOCUMENT = "this_document"
    NOTE_TYPE = "note_type"
    SERVICE = "service"
    GLOBAL = "global"
