from __future__ import annotations

from codenexus.domain.languages import validate_language
from codenexus.domain.models import SubmissionRequest

COMPONENT_ID = "domain.request.build"


def build_request(language: str, source_code: str, stdin: str | None = None) -> SubmissionRequest:
    """Package one run action. Empty stdin is dropped so no input file is sent."""
    resolved = validate_language(language)
    return SubmissionRequest(
        language=resolved.id,
        source_code=source_code,
        stdin=stdin or None,
    )
