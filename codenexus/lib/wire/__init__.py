from codenexus.lib.wire.codecs import (
    analysis_outcome,
    decode_analysis,
    decode_execution,
    decode_submission,
    encode_submission,
    execution_outcome,
    is_pending_execution,
)

__all__ = [
    "analysis_outcome",
    "decode_analysis",
    "decode_execution",
    "decode_submission",
    "encode_submission",
    "execution_outcome",
    "is_pending_execution",
]
