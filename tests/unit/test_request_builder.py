import pytest

from codenexus.domain.errors import UnsupportedLanguageError
from codenexus.domain.models import SubmissionRequest
from codenexus.domain.use_cases.build_request import build_request
from codenexus.lib.wire import encode_submission


@pytest.mark.unit
def test_build_request_keeps_empty_source() -> None:
    assert build_request("go", "") == SubmissionRequest(language="go", source_code="", stdin=None)


@pytest.mark.unit
def test_build_request_drops_empty_stdin() -> None:
    assert build_request("python", "print(1)", "").stdin is None
    assert build_request("python", "print(input())", "5\n").stdin == "5\n"


@pytest.mark.unit
def test_build_request_rejects_unknown_language() -> None:
    with pytest.raises(UnsupportedLanguageError):
        build_request("ruby", "puts 1")


@pytest.mark.unit
def test_encode_submission_names_files_after_language() -> None:
    data, files = encode_submission(build_request("cpp", "int main() {}", "1 2\n"))

    assert data == {"language": "cpp"}
    assert files["code"] == ("code.cpp", b"int main() {}", "text/plain")
    assert files["stdin"] == ("code.cpp", b"1 2\n", "text/plain")


@pytest.mark.unit
def test_encode_submission_omits_stdin_file_without_input() -> None:
    _, files = encode_submission(build_request("python", 'print("hi")'))

    assert set(files) == {"code"}
