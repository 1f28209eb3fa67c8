"""Envelope model for CouchDB listing responses (``_all_docs``, views and ``_find``)."""

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from couchbridge.clients.couch.models.CouchDBError import CouchResponseError
from couchbridge.clients.couch.models.Document import Document

T = TypeVar("T", bound=Document)

# field holding the full document when the query ran with include_docs=true
DOC_FIELD = "doc"


class OffsetPage(BaseModel):
    """
    Pagination metadata of a plain document listing or view query.

    Attributes:
        total_rows: Number of documents in the database/view.
        offset:     Index of the first returned row within the full result set.
    """

    model_config = ConfigDict(frozen=True)

    total_rows: int
    offset: int


class BookmarkPage(BaseModel):
    """
    Pagination metadata of a ``_find`` query.

    Attributes:
        bookmark: Opaque token to request the next page with.
    """

    model_config = ConfigDict(frozen=True)

    bookmark: str


class RowDecodeFailure(BaseModel):
    """
    A row that carried a document which could not be decoded.

    Attributes:
        index:  Position of the row within ``rows``.
        row_id: The row's "id" field, if present.
        reason: Why serialisation or validation failed.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    row_id: str | None = None
    reason: str


class DecodeReport(BaseModel):
    """
    Outcome of :meth:`AllDatabaseDocuments.decode_documents_with_failures`.

    Attributes:
        documents: The successfully decoded documents, in row order.
        failures:  One entry per row whose document could not be decoded.
    """

    documents: list[Any] = []
    failures: list[RowDecodeFailure] = []


class AllDatabaseDocuments(BaseModel):
    """
    The JSON returned when querying a database or view.

    A response is either offset-paginated (``_all_docs`` and views, carrying
    ``total_rows`` and ``offset``) or bookmark-paginated (``_find``, carrying a
    ``bookmark``). Which one is decided by the constructor used; the shape is
    held in ``page`` so an instance can never carry both.

    If the query ran with ``include_docs=true`` each row has an additional
    "doc" field holding the JSON document, which can be decoded to a
    :class:`Document` subclass with :meth:`decode_documents`::

        class MyDocument(Document):
            value: str

        all_docs = await client.do_retrieve_all(include_documents=True)
        for doc in all_docs.decode_documents(MyDocument):
            print(doc.value)

    Attributes:
        page:       Pagination metadata, :class:`OffsetPage` or :class:`BookmarkPage`.
        update_seq: Update sequence of the database at query time, if requested.
        rows:       Raw result rows. Each one holds "id", "key" and usually "value",
                    plus "doc" when documents were included.

    Instances are immutable and compare by value, but are not hashable.
    """

    model_config = ConfigDict(frozen=True)

    page: OffsetPage | BookmarkPage
    update_seq: str | None = None
    rows: tuple[dict[str, Any], ...] = ()

    # rows hold dicts, so a generated hash could never succeed
    __hash__ = None

    ##########################################
    ############# CONSTRUCTION ###############
    ##########################################

    @classmethod
    def from_offset(cls, total_rows: int, offset: int, rows: list[dict[str, Any]], update_seq: str | None = None) -> "AllDatabaseDocuments":
        """
        Builds an offset-paginated envelope.

        Args:
            total_rows (int): Number of documents in the database/view.
            offset (int): Offset where the document list started.
            rows (list[dict[str, Any]]): The raw result rows.
            update_seq (str | None): Update sequence of the database, if known.

        Returns:
            AllDatabaseDocuments: The envelope, with ``bookmark`` unset.
        """
        return cls(page=OffsetPage(total_rows=total_rows, offset=offset), rows=rows, update_seq=update_seq)

    @classmethod
    def from_bookmark(cls, bookmark: str, rows: list[dict[str, Any]], update_seq: str | None = None) -> "AllDatabaseDocuments":
        """
        Builds a bookmark-paginated envelope.

        Args:
            bookmark (str): Token to request the next page with.
            rows (list[dict[str, Any]]): The raw result rows.
            update_seq (str | None): Update sequence of the database, if known.

        Returns:
            AllDatabaseDocuments: The envelope, with ``total_rows`` and ``offset`` unset.
        """
        return cls(page=BookmarkPage(bookmark=bookmark), rows=rows, update_seq=update_seq)

    @classmethod
    def from_response(cls, body: Any) -> "AllDatabaseDocuments":
        """
        Builds the envelope from a deserialised response body.

        A body with a "bookmark" is bookmark-paginated, anything else is
        offset-paginated. ``_find`` bodies list plain documents under "docs";
        those are wrapped into rows shaped like ``_all_docs`` rows with the
        document under "doc". Reduced view bodies have neither "total_rows"
        nor "offset" and report their own row count with an offset of 0.

        Args:
            body (Any): The JSON body as returned by ``httpx.Response.json()``.

        Returns:
            AllDatabaseDocuments: The matching envelope variant.

        Raises:
            CouchResponseError: If the body is not an object, has neither "rows" nor "docs",
                or carries fields of the wrong type.
        """
        if not isinstance(body, dict):
            raise CouchResponseError(f"Expected a JSON object as response body, got {type(body).__name__}.")

        if "rows" in body:
            rows = body["rows"]
        elif "docs" in body:
            rows = cls._wrap_found_documents(body["docs"])
        else:
            raise CouchResponseError("Response body contains neither 'rows' nor 'docs'.")

        try:
            if body.get("bookmark") is not None:
                return cls.from_bookmark(bookmark=body["bookmark"], rows=rows, update_seq=cls._get_update_seq(body))
            total_rows = body.get("total_rows")
            if total_rows is None:
                total_rows = len(rows) if isinstance(rows, list) else 0
            return cls.from_offset(total_rows=total_rows, offset=body.get("offset") or 0, rows=rows, update_seq=cls._get_update_seq(body))
        except ValidationError as e:
            raise CouchResponseError(f"Response body does not match the listing envelope: {e}") from e

    @staticmethod
    def _get_update_seq(body: dict) -> str | None:
        # CouchDB 1.x sends integer sequences, 2.x+ opaque strings
        update_seq = body.get("update_seq")
        return str(update_seq) if update_seq is not None else None

    @staticmethod
    def _wrap_found_documents(docs: Any) -> Any:
        if not isinstance(docs, list):
            return docs
        rows = []
        for doc in docs:
            if not isinstance(doc, dict):
                rows.append(doc)
                continue
            row: dict[str, Any] = {"id": doc.get("_id"), "key": doc.get("_id"), DOC_FIELD: doc}
            if "_rev" in doc:
                row["value"] = {"rev": doc["_rev"]}
            rows.append(row)
        return rows

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def bookmark(self) -> str | None:
        """Allows you to page through the results. Only set on bookmark-paginated responses."""
        return self.page.bookmark if isinstance(self.page, BookmarkPage) else None

    @property
    def total_rows(self) -> int | None:
        """Number of documents in the database/view. Only set on offset-paginated responses."""
        return self.page.total_rows if isinstance(self.page, OffsetPage) else None

    @property
    def offset(self) -> int | None:
        """Offset where the document list started. Only set on offset-paginated responses."""
        return self.page.offset if isinstance(self.page, OffsetPage) else None

    ##########################################
    ############### DECODING #################
    ##########################################

    def decode_documents(self, document_type: type[T]) -> list[T]:
        """
        Returns the documents of all rows that could be decoded as the given type.

        Rows without a "doc" field, rows whose document cannot be serialised
        and rows whose document does not validate against ``document_type``
        are skipped without error. If the query ran without ``include_docs``
        the result is therefore always empty.

        Args:
            document_type (type[T]): The Document subclass to decode into.

        Returns:
            list[T]: The decoded documents, in row order.
        """
        documents = []
        for row in self.rows:
            document = row.get(DOC_FIELD)
            if document is None:
                continue
            try:
                documents.append(self._decode_document(document, document_type))
            except Exception:
                # any failure only drops this row
                continue
        return documents

    def decode_documents_with_failures(self, document_type: type[T]) -> DecodeReport:
        """
        Same as :meth:`decode_documents`, but also reports which rows carried a
        document that could not be decoded, and why.

        Rows without a "doc" field are not reported as failures.

        Args:
            document_type (type[T]): The Document subclass to decode into.

        Returns:
            DecodeReport: The decoded documents and the per-row failures.
        """
        documents = []
        failures = []
        for index, row in enumerate(self.rows):
            document = row.get(DOC_FIELD)
            if document is None:
                continue
            try:
                documents.append(self._decode_document(document, document_type))
            except Exception as e:
                row_id = row.get("id")
                failures.append(RowDecodeFailure(index=index, row_id=row_id if isinstance(row_id, str) else None, reason=str(e)))
        return DecodeReport(documents=documents, failures=failures)

    @staticmethod
    def _decode_document(document: Any, document_type: type[T]) -> T:
        # round-trip through JSON so the type validates exactly what CouchDB sent
        payload = json.dumps(document, allow_nan=False)
        return document_type.model_validate_json(payload)
