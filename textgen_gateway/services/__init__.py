"""
Services Package - normalization, error classification and generation.
"""

from textgen_gateway.services.classifier import ErrorClassifier
from textgen_gateway.services.generation import GenerationService, build_call_params
from textgen_gateway.services.normalizer import normalize
from textgen_gateway.services.streaming import FragmentSink, StreamExecutor, StreamState

__all__ = [
    "ErrorClassifier",
    "GenerationService",
    "build_call_params",
    "normalize",
    "FragmentSink",
    "StreamExecutor",
    "StreamState",
]
