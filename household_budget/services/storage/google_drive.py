"""
Google Drive Storage Implementation

DESIGN DECISION: The optional remote backup is a single JSON file in the
Drive application data folder because:
1. The folder is private to this app and hidden from the user's Drive
2. One file holds the whole backup, exactly like the local export
3. No server of our own is needed

TRADEOFFS:
- No conflict detection (the last upload wins, same as local storage)
- No retry; a failed request surfaces to the caller
- Requests block until Drive answers

The client is created by the caller and holds its own credentials and
HTTP session, initialized on first use.
"""

import json
from typing import Any, Optional

from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account
from requests import RequestException, Response

from household_budget.config import GoogleDriveSettings, get_settings
from household_budget.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    RemoteStorageError,
)


DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3"
APP_DATA_FOLDER = "appDataFolder"

MULTIPART_BOUNDARY = "-------314159265358979323846"
JSON_CONTENT_TYPE = "application/json"


def build_multipart_body(metadata: dict, data: Any) -> bytes:
    """
    Encode file metadata and JSON content as one multipart/related body.

    The first part carries the Drive metadata, the second the file data.
    """
    delimiter = f"\r\n--{MULTIPART_BOUNDARY}\r\n"
    close_delimiter = f"\r\n--{MULTIPART_BOUNDARY}--"

    body = (
        delimiter
        + f"Content-Type: {JSON_CONTENT_TYPE}\r\n\r\n"
        + json.dumps(metadata)
        + delimiter
        + f"Content-Type: {JSON_CONTENT_TYPE}\r\n\r\n"
        + json.dumps(data)
        + close_delimiter
    )
    return body.encode("utf-8")


def multipart_content_type() -> str:
    return f'multipart/related; boundary="{MULTIPART_BOUNDARY}"'


class GoogleDriveClient:
    """
    Low-level Google Drive client wrapper.

    Handles authentication and the three calls the backup mirror needs:
    find by name, upload (create or replace) and download.
    """

    def __init__(
        self,
        settings: Optional[GoogleDriveSettings] = None,
        session: Optional[AuthorizedSession] = None,
    ):
        self._settings = settings
        self._session = session

    @property
    def settings(self) -> GoogleDriveSettings:
        if self._settings is None:
            self._settings = get_settings().google_drive
        return self._settings

    def _load_credentials(self):
        settings = self.settings
        path = settings.credentials_path
        scopes = settings.scopes_list

        if settings.credentials_kind == "service_account":
            return service_account.Credentials.from_service_account_file(
                path,
                scopes=scopes,
            )
        return user_credentials.Credentials.from_authorized_user_file(
            path,
            scopes=scopes,
        )

    def connect(self) -> AuthorizedSession:
        """
        Establish an authorized HTTP session.

        Token refresh is handled by the session on each request.
        """
        if self._session is None:
            try:
                credentials = self._load_credentials()
                self._session = AuthorizedSession(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google Drive credentials file not found: {self.settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to authorize Google Drive: {e}")

        return self._session

    def _request(self, method: str, url: str, **kwargs) -> Response:
        session = self.connect()
        try:
            response = session.request(method, url, **kwargs)
        except RequestException as e:
            raise RemoteStorageError(f"Google Drive request failed: {e}")

        if response.status_code == 404:
            raise NotFoundError(f"Google Drive resource not found: {url}")
        if response.status_code >= 400:
            raise RemoteStorageError(
                f"Google Drive returned {response.status_code}: {response.text[:200]}"
            )
        return response

    def find_file(self, filename: Optional[str] = None) -> Optional[dict]:
        """
        Find a file in the app data folder by exact name.

        Returns:
            {"id": ..., "name": ...} of the first match, or None
        """
        filename = filename or self.settings.filename
        escaped = filename.replace("\\", "\\\\").replace("'", "\\'")
        response = self._request(
            "GET",
            f"{DRIVE_API_URL}/files",
            params={
                "spaces": APP_DATA_FOLDER,
                "q": f"name = '{escaped}'",
                "fields": "files(id, name)",
            },
        )
        files = response.json().get("files") or []
        return files[0] if files else None

    def upload(
        self,
        data: Any,
        existing_file_id: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> dict:
        """
        Upload JSON data, creating the file or replacing an existing one.

        New files are placed in the app data folder.

        Returns:
            The Drive file resource (at least its id)
        """
        filename = filename or self.settings.filename
        metadata = {
            "name": filename,
            "mimeType": JSON_CONTENT_TYPE,
        }
        if existing_file_id:
            method = "PATCH"
            url = f"{DRIVE_UPLOAD_URL}/files/{existing_file_id}"
        else:
            method = "POST"
            url = f"{DRIVE_UPLOAD_URL}/files"
            metadata["parents"] = [APP_DATA_FOLDER]

        response = self._request(
            method,
            url,
            params={"uploadType": "multipart"},
            headers={"Content-Type": multipart_content_type()},
            data=build_multipart_body(metadata, data),
        )
        return response.json()

    def download(self, file_id: str) -> Any:
        """Download a file's JSON content."""
        response = self._request(
            "GET",
            f"{DRIVE_API_URL}/files/{file_id}",
            params={"alt": "media"},
        )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteStorageError(f"Remote file {file_id} is not valid JSON: {e}")
