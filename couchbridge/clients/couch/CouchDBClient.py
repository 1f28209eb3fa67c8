import base64
import json
from typing import Any
from urllib.parse import quote

import httpx

from couchbridge.clients.ClientInterface import ClientInterface
from couchbridge.clients.couch.models.AllDatabaseDocuments import AllDatabaseDocuments
from couchbridge.clients.couch.models.CouchDBError import CouchDBError
from couchbridge.helper.HelperConfig import HelperConfig
from couchbridge.models.config import EnvConfig

# query options CouchDB expects as JSON values
_JSON_QUERY_OPTIONS = ("key", "startkey", "endkey", "start_key", "end_key")


class CouchDBClient(ClientInterface):
    """
    Async client for a single CouchDB database.

    Every listing request returns an :class:`AllDatabaseDocuments` envelope;
    typed documents are obtained from it with ``decode_documents``.
    """

    def __init__(self, helper_config: HelperConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(helper_config=helper_config, transport=transport)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._database = self.get_config_val("DATABASE", default=None, val_type="string")
        self._username = self.get_config_val("USERNAME", default="", val_type="string")
        self._password = self.get_config_val("PASSWORD", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "couch"

    def _get_engine_name(self) -> str:
        return "CouchDB"

    def get_database_name(self) -> str:
        return self._database

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="DATABASE", val_type="string", default=None),
            EnvConfig(env_key="USERNAME", val_type="string", default=""),
            EnvConfig(env_key="PASSWORD", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if not self._username:
            return {}
        token = base64.b64encode(f"{self._username}:{self._password}".encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {token}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/"

    def _get_endpoint_database(self) -> str:
        return f"/{quote(self._database, safe='')}"

    def _get_endpoint_all_documents(self) -> str:
        return f"{self._get_endpoint_database()}/_all_docs"

    def _get_endpoint_view(self, design: str, view: str) -> str:
        return f"{self._get_endpoint_database()}/_design/{quote(design, safe='')}/_view/{quote(view, safe='')}"

    def _get_endpoint_find(self) -> str:
        return f"{self._get_endpoint_database()}/_find"

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_query_params(self, **options: Any) -> dict[str, str]:
        """
        Converts query options to the string values CouchDB expects.

        Options set to None are dropped, booleans become "true"/"false" and
        key options are JSON-encoded.

        Returns:
            dict[str, str]: The query parameters.
        """
        params = {}
        for name, value in options.items():
            if value is None:
                continue
            if name in _JSON_QUERY_OPTIONS:
                params[name] = json.dumps(value)
            elif isinstance(value, bool):
                params[name] = "true" if value else "false"
            else:
                params[name] = str(value)
        return params

    def _raise_for_response(self, response: httpx.Response) -> None:
        raise CouchDBError.from_response(response.status_code, response.content, url=str(response.url))

    async def _do_listing_request(self, endpoint: str, params: dict[str, str], keys: list | None) -> AllDatabaseDocuments:
        # CouchDB takes "keys" as POST body so long key lists do not hit URL limits
        if keys is not None:
            resp = await self.do_request(method="POST", endpoint=endpoint, params=params, json={"keys": keys}, raise_on_error=True)
        else:
            resp = await self.do_request(method="GET", endpoint=endpoint, params=params, raise_on_error=True)
        return AllDatabaseDocuments.from_response(resp.json())

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_retrieve_all(
        self,
        include_documents: bool = False,
        descending: bool = False,
        endkey: Any = None,
        inclusive_end: bool = True,
        keys: list | None = None,
        limit: int | None = None,
        skip: int | None = None,
        startkey: Any = None,
        update_seq: bool = False,
    ) -> AllDatabaseDocuments:
        """
        Lists the documents of the database via ``_all_docs``.

        Args:
            include_documents (bool): Add the full document to every row under "doc".
            descending (bool): Return the rows in descending key order.
            endkey (Any): Stop listing at this document id.
            inclusive_end (bool): Include the row matching ``endkey``.
            keys (list | None): Only return the rows for these document ids.
            limit (int | None): Maximum number of rows.
            skip (int | None): Number of rows to skip.
            startkey (Any): Start listing at this document id.
            update_seq (bool): Report the database update sequence.

        Returns:
            AllDatabaseDocuments: The offset-paginated envelope.

        Raises:
            CouchDBError: If CouchDB answers with a non-2xx status.
            CouchResponseError: If the response body is not a listing.
        """
        params = self._build_query_params(
            include_docs=include_documents,
            descending=descending or None,
            endkey=endkey,
            inclusive_end=None if inclusive_end else False,
            limit=limit,
            skip=skip,
            startkey=startkey,
            update_seq=update_seq or None,
        )
        all_docs = await self._do_listing_request(self._get_endpoint_all_documents(), params, keys)
        self.logging.info("Fetched %d of %s rows from %s database '%s'", len(all_docs.rows), all_docs.total_rows, self._get_engine_name(), self._database)
        return all_docs

    async def do_query_by_view(
        self,
        design: str,
        view: str,
        include_documents: bool = False,
        keys: list | None = None,
        **query_options: Any,
    ) -> AllDatabaseDocuments:
        """
        Queries a view of a design document.

        Args:
            design (str): Name of the design document, without the "_design/" prefix.
            view (str): Name of the view.
            include_documents (bool): Add the emitting document to every row under "doc".
            keys (list | None): Only return the rows for these keys.
            **query_options: Further view options, e.g. ``key``, ``startkey``, ``endkey``,
                ``limit``, ``skip``, ``descending``, ``reduce``, ``group``, ``group_level``,
                ``inclusive_end``, ``update_seq``. None values are ignored.

        Returns:
            AllDatabaseDocuments: The offset-paginated envelope.

        Raises:
            CouchDBError: If CouchDB answers with a non-2xx status.
            CouchResponseError: If the response body is not a listing.
        """
        params = self._build_query_params(include_docs=include_documents, **query_options)
        view_result = await self._do_listing_request(self._get_endpoint_view(design, view), params, keys)
        self.logging.info("Fetched %d rows from view '%s/%s' in database '%s'", len(view_result.rows), design, view, self._database)
        return view_result

    async def do_find(
        self,
        selector: dict,
        limit: int | None = None,
        skip: int | None = None,
        sort: list | None = None,
        fields: list[str] | None = None,
        bookmark: str | None = None,
    ) -> AllDatabaseDocuments:
        """
        Runs a Mango query via ``_find``.

        The matching documents are returned as rows carrying the document
        under "doc", so they decode the same way as ``_all_docs`` rows.

        Args:
            selector (dict): The Mango selector.
            limit (int | None): Maximum number of documents.
            skip (int | None): Number of documents to skip.
            sort (list | None): Sort specification.
            fields (list[str] | None): Restrict the returned fields.
            bookmark (str | None): Bookmark of the previous page to continue from.

        Returns:
            AllDatabaseDocuments: The bookmark-paginated envelope.

        Raises:
            CouchDBError: If CouchDB answers with a non-2xx status.
            CouchResponseError: If the response body is not a listing.
        """
        query: dict[str, Any] = {"selector": selector}
        optional = {"limit": limit, "skip": skip, "sort": sort, "fields": fields, "bookmark": bookmark}
        query.update({name: value for name, value in optional.items() if value is not None})

        resp = await self.do_request(method="POST", endpoint=self._get_endpoint_find(), json=query, raise_on_error=True)
        body = resp.json()
        if isinstance(body, dict) and body.get("warning"):
            self.logging.warning("CouchDB warning for query on '%s': %s", self._database, body["warning"])
        found = AllDatabaseDocuments.from_response(body)
        self.logging.info("Found %d documents in database '%s'", len(found.rows), self._database)
        return found
