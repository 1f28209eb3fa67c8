"""Generic CouchDB document model, the minimal contract a type must satisfy to be decoded from a row."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """
    Base class for every document stored in CouchDB.

    CouchDB reserves the ``_id`` and ``_rev`` fields. Pydantic does not allow
    field names with a leading underscore, so both are exposed as ``id`` and
    ``rev`` and mapped through aliases. Subclasses add their own fields::

        class MyDocument(Document):
            value: str

        MyDocument.model_validate({"_id": "a", "_rev": "1-x", "value": "hello"})

    Attributes:
        id:  Document identifier (``_id``). None for documents not yet stored.
        rev: Current revision (``_rev``). None for documents not yet stored.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(default=None, alias="_id")
    rev: str | None = Field(default=None, alias="_rev")

    def to_couch(self) -> dict[str, Any]:
        """
        Returns the document as a JSON-ready dict using CouchDB field names.

        Returns:
            dict[str, Any]: The document body; ``_id``/``_rev`` are left out while unset.
        """
        body = self.model_dump(mode="json", by_alias=True)
        for reserved in ("_id", "_rev"):
            if body.get(reserved) is None:
                body.pop(reserved, None)
        return body
