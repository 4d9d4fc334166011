from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from codenexus.domain.errors import UnsupportedExtensionError, UnsupportedLanguageError

LanguageId = Literal["python", "java", "cpp", "go"]

# Languages wired to the remote service. Earlier UI-only variants listed more,
# none of which the service accepts.
SUPPORTED_LANGUAGES: tuple[LanguageId, ...] = ("python", "java", "cpp", "go")


@dataclass(frozen=True)
class Language:
    id: LanguageId
    name: str
    ext: str
    starter_template: str
    input_pattern: re.Pattern[str]


LANGUAGES: dict[str, Language] = {
    "python": Language(
        id="python",
        name="Python",
        ext="py",
        starter_template=(
            "# Python Online Compiler\n"
            "# Write your Python code here and click Run to execute\n"
            'message = "Try CodeNexus"\n'
            "print(message)"
        ),
        input_pattern=re.compile(r"\binput\s*\("),
    ),
    "java": Language(
        id="java",
        name="Java",
        ext="java",
        starter_template=(
            "// Java Online Compiler\n"
            "// Write your Java code here and click Run to execute\n"
            "class Code {\n"
            "    public static void main(String[] args) {\n"
            '        String message = "Try CodeNexus";\n'
            "        System.out.println(message);\n"
            "    }\n"
            "}"
        ),
        input_pattern=re.compile(r"new\s+Scanner\s*\(\s*System\.in\s*\)"),
    ),
    "cpp": Language(
        id="cpp",
        name="C++",
        ext="cpp",
        starter_template=(
            "// C++ Online Compiler\n"
            "// Write your C++ code here and click Run to execute\n"
            "#include <iostream>\n"
            "using namespace std;\n"
            "\n"
            "int main() {\n"
            '    string message = "Try CodeNexus";\n'
            "    cout << message << endl;\n"
            "    return 0;\n"
            "}"
        ),
        input_pattern=re.compile(r"cin\s*>>|getline\s*\(\s*cin"),
    ),
    "go": Language(
        id="go",
        name="Go",
        ext="go",
        starter_template=(
            "// Go Online Compiler\n"
            "// Write your Go code here and click Run to execute\n"
            "package main\n"
            "\n"
            'import "fmt"\n'
            "\n"
            "func main() {\n"
            '    message := "Try CodeNexus"\n'
            "    fmt.Println(message)\n"
            "}"
        ),
        input_pattern=re.compile(r"bufio\.NewReader\s*\(\s*os\.Stdin\s*\)"),
    ),
}

EXTENSION_TO_LANGUAGE: dict[str, LanguageId] = {language.ext: language.id for language in LANGUAGES.values()}
ALLOWED_UPLOAD_EXTENSIONS: tuple[str, ...] = tuple(EXTENSION_TO_LANGUAGE)


def validate_language(language: str) -> Language:
    found = LANGUAGES.get(language)
    if found is not None:
        return found

    supported = ", ".join(SUPPORTED_LANGUAGES)
    raise UnsupportedLanguageError(f"Unsupported language '{language}'. Supported languages: {supported}.")


def language_for_filename(filename: str) -> Language:
    """Resolve an uploaded file name to a language by its extension."""
    _, dot, extension = filename.rpartition(".")
    language_id = EXTENSION_TO_LANGUAGE.get(extension) if dot else None
    if language_id is None:
        allowed = ", ".join(ALLOWED_UPLOAD_EXTENSIONS)
        raise UnsupportedExtensionError(f"Only the following file types are allowed: {allowed}")
    return LANGUAGES[language_id]


def needs_input(language: str, code: str) -> bool:
    return validate_language(language).input_pattern.search(code) is not None


def source_filename(language: str) -> str:
    return f"code.{validate_language(language).ext}"


def download_filename(language: str) -> str:
    return f"{language}-code.{validate_language(language).ext}"
