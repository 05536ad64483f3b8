"""
Trilium ETAPI client infrastructure for collection-views.

Provides a note host backed by a running Trilium server:
- EtapiClient: blocking HTTP access to the ETAPI endpoints
- EtapiHost / EtapiNote: the async Note interface on top of it

Blocking requests run in worker threads so that relation fan-out and note
lookups issued together stay concurrent.
"""

import asyncio
import logging
import os
import threading
from typing import Any, Dict, List, Optional

import requests

from ..domain.note import RELATION, Attribute, Note, NoteHost, NoteMetadata
from ..exit_codes import HostError

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = 'COLLECTION_VIEWS_ETAPI_TOKEN'


class EtapiClient:
    """
    Client for the Trilium ETAPI REST API.

    Example:
        client = EtapiClient("http://localhost:8080", token="...")
        data = client.get_note("root")
        if data:
            print(data["title"])
    """

    def __init__(self, url: str, token: Optional[str] = None, timeout: float = 30):
        """
        Initialize EtapiClient.

        Args:
            url: Base URL of the Trilium server
            token: ETAPI token (defaults to COLLECTION_VIEWS_ETAPI_TOKEN env var)
            timeout: HTTP request timeout in seconds
        """
        self.base_url = url.rstrip('/')
        if self.base_url.endswith('/etapi'):
            self.base_url = self.base_url[:-len('/etapi')]
        self.token = token or os.environ.get(TOKEN_ENV_VAR)
        self.timeout = timeout
        self._local = threading.local()

    def _make_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'collection-views',
        })
        if self.token:
            session.headers['Authorization'] = self.token
        return session

    @property
    def session(self) -> requests.Session:
        """HTTP session for the calling thread; requests sessions are not thread-safe."""
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._local.session = self._make_session()
        return session

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[requests.Response]:
        """GET an ETAPI endpoint; None on 404, HostError on any other failure."""
        url = f"{self.base_url}/etapi/{endpoint}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise HostError(f"ETAPI request failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise HostError(f"ETAPI error {response.status_code} for {endpoint}")
        return response

    def _get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        response = self._get(endpoint, params)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise HostError(f"ETAPI returned invalid JSON for {endpoint}: {e}") from e

    def search_notes(self, query: str) -> List[Dict[str, Any]]:
        """Run a search and return the raw note records."""
        data = self._get_json('notes', {'search': query})
        if data is None:
            return []
        return data.get('results', [])

    def get_note(self, note_id: str) -> Optional[Dict[str, Any]]:
        """Return a raw note record, or None if it does not exist."""
        return self._get_json(f'notes/{note_id}')

    def get_note_content(self, note_id: str) -> str:
        """Return a note's content, or "" if the note does not exist."""
        response = self._get(f'notes/{note_id}/content')
        return response.text if response is not None else ''


class EtapiNote(Note):
    """Note backed by an ETAPI note record; content is fetched on first use."""

    def __init__(self, data: Dict[str, Any], host: 'EtapiHost'):
        self.note_id = str(data.get('noteId', ''))
        self.title = data.get('title') or ''
        self.type = data.get('type') or 'text'
        self.mime = data.get('mime') or ''
        self.utc_date_created = data.get('utcDateCreated') or ''
        self.utc_date_modified = data.get('utcDateModified') or ''
        self.attributes = [Attribute.from_dict(attribute)
                           for attribute in data.get('attributes') or []]
        self.host = host
        self._content: Optional[str] = None

    def get_attributes(self, type: Optional[str] = None,
                       name: Optional[str] = None) -> List[Attribute]:
        return [
            attribute for attribute in self.attributes
            if (type is None or attribute.type == type)
            and (name is None or attribute.name == name)
        ]

    async def get_relation_targets(self, name: Optional[str] = None) -> List[Note]:
        targets = await asyncio.gather(
            *(self.host.get_note(attribute.value)
              for attribute in self.get_attributes(RELATION, name))
        )
        return [target for target in targets if target is not None]

    async def get_content(self) -> str:
        if self._content is None:
            self._content = await asyncio.to_thread(
                self.host.client.get_note_content, self.note_id
            )
        return self._content

    async def get_metadata(self) -> NoteMetadata:
        content = await self.get_content()
        return NoteMetadata(
            content_length=len(content.encode('utf-8')),
            utc_date_created=self.utc_date_created,
            utc_date_modified=self.utc_date_modified,
        )


class EtapiHost(NoteHost):
    """Note host backed by a Trilium server."""

    def __init__(self, client: EtapiClient):
        self.client = client

    async def search_for_notes(self, query: str) -> List[Note]:
        records = await asyncio.to_thread(self.client.search_notes, query)
        logger.debug(f"ETAPI search returned {len(records)} notes")
        return [EtapiNote(record, self) for record in records]

    async def get_note(self, note_id: str) -> Optional[Note]:
        record = await asyncio.to_thread(self.client.get_note, note_id)
        if record is None:
            return None
        return EtapiNote(record, self)
