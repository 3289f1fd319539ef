from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from pydantic import ValidationError

from .errors import StorageError
from .io_utils import read_json_content, write_json_file
from .models import SavedDocument

logger = logging.getLogger(__name__)

TOKEN_KEY = 'apiToken'
DOC_ID_KEY = 'docId'
SAVED_DOCS_KEY = 'savedDocs'


class ConfigStore:
    """Key/value JSON file holding the last-used credentials and saved documents."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = read_json_content(str(self.path))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StorageError(f"Could not read saved settings from {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Saved settings in {self.path} are not a JSON object.")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            write_json_file(self.path, data)
        except OSError as exc:
            raise StorageError(f"Could not write saved settings to {self.path}: {exc}") from exc

    def _update(self, **values: Any) -> None:
        data = self._read()
        for key, value in values.items():
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
        self._write(data)

    def last_credentials(self) -> Tuple[str, str]:
        data = self._read()
        return data.get(TOKEN_KEY) or '', data.get(DOC_ID_KEY) or ''

    def remember_credentials(self, api_token: str, doc_id: str) -> None:
        self._update(**{TOKEN_KEY: api_token, DOC_ID_KEY: doc_id})

    def forget_credentials(self) -> None:
        self._update(**{TOKEN_KEY: None, DOC_ID_KEY: None})

    def saved_documents(self) -> List[SavedDocument]:
        docs: List[SavedDocument] = []
        for entry in self._read().get(SAVED_DOCS_KEY) or []:
            try:
                docs.append(SavedDocument.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed saved document entry in %s", self.path)
        return docs

    def save_document(self, doc: SavedDocument) -> List[SavedDocument]:
        """Store ``doc``, replacing any earlier entry for the same document ID."""
        docs = [d for d in self.saved_documents() if d.doc_id != doc.doc_id]
        docs.append(doc)
        self._update(**{SAVED_DOCS_KEY: [d.to_storage() for d in docs]})
        logger.info("Saved document %s (%s)", doc.doc_name, doc.doc_id)
        return docs

    def remove_document(self, doc_id: str) -> List[SavedDocument]:
        docs = [d for d in self.saved_documents() if d.doc_id != doc_id]
        self._update(**{SAVED_DOCS_KEY: [d.to_storage() for d in docs]})
        return docs
