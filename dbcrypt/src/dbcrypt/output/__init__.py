"""Classification, parsing and JSON projection of engine output."""

from .classifier import Classification, OutcomeKind, OutputClassifier, strip_acknowledgement
from .parser import ResultTable, TabularResultParser
from .projector import JsonProjector

__all__ = [
    "Classification",
    "JsonProjector",
    "OutcomeKind",
    "OutputClassifier",
    "ResultTable",
    "TabularResultParser",
    "strip_acknowledgement",
]
