from __future__ import annotations

from codenexus.api.schemas import LanguageResponse, ListLanguagesResponse
from codenexus.domain.languages import ALLOWED_UPLOAD_EXTENSIONS, LANGUAGES, SUPPORTED_LANGUAGES

COMPONENT_ID = "api.list_languages"


async def list_languages_handler() -> ListLanguagesResponse:
    items = [
        LanguageResponse(
            id=LANGUAGES[language_id].id,
            name=LANGUAGES[language_id].name,
            ext=LANGUAGES[language_id].ext,
            starter_template=LANGUAGES[language_id].starter_template,
        )
        for language_id in SUPPORTED_LANGUAGES
    ]
    return ListLanguagesResponse(items=items, allowed_upload_extensions=list(ALLOWED_UPLOAD_EXTENSIONS))
