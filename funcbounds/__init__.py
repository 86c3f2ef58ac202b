"""Public package exports for the heuristic function boundary finder."""

from .analysis import AnalysisError, FunctionAnalysis, analyze, export_boundaries
from .candidates import Candidate, CandidateSet
from .end_finder import FunctionEndFinder
from .instruction import DecodedInstruction, FlowGroup, InstructionDecoder, Operand, OperandKind
from .memory import BytesMemorySource, FileMemorySource, MemorySource
from .references import ReferenceScanner
from .region import DECODE_SLACK, RegionBuffer
from .registry import (
    FunctionRange,
    FunctionRegistry,
    InMemoryFunctionRegistry,
    JsonFunctionRegistry,
    RegistryError,
)

__all__ = [
    "AnalysisError",
    "FunctionAnalysis",
    "analyze",
    "export_boundaries",
    "Candidate",
    "CandidateSet",
    "FunctionEndFinder",
    "DecodedInstruction",
    "FlowGroup",
    "InstructionDecoder",
    "Operand",
    "OperandKind",
    "BytesMemorySource",
    "FileMemorySource",
    "MemorySource",
    "ReferenceScanner",
    "DECODE_SLACK",
    "RegionBuffer",
    "FunctionRange",
    "FunctionRegistry",
    "InMemoryFunctionRegistry",
    "JsonFunctionRegistry",
    "RegistryError",
]
