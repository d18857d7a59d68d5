# Overview: Spreadsheet targets for the ticket backup job.

"""
Spreadsheet targets.

Both targets expose the same two calls used by export_service:

    ensure_worksheet(title, headers)   create the tab with a header row if absent
    append_rows(title, rows)           append data rows below existing ones

GoogleSheetsTarget talks to the Sheets v4 REST API with httpx, authenticated
as a Google service account; WorkbookTarget writes a local .xlsx with
openpyxl (offline sites, or a USB stick swapped out by the operator).
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, Sequence
from urllib.parse import quote

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account
from openpyxl import Workbook, load_workbook

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class SheetTargetError(Exception):
    """The spreadsheet could not be reached or rejected the write."""


class SheetTarget(Protocol):
    def ensure_worksheet(self, title: str, headers: Sequence[str]) -> None: ...

    def append_rows(self, title: str, rows: Sequence[Sequence[Any]]) -> None: ...


class GoogleSheetsTarget:
    """
    Sheets v4 REST over httpx.

    credentials is a google-auth credentials object; its bearer token is
    refreshed whenever it is missing or expired, so unattended daily runs
    keep working. auth_request is the transport google-auth uses for the
    token exchange.
    """

    API_ROOT = "https://sheets.googleapis.com/v4/spreadsheets"

    def __init__(
        self,
        spreadsheet_id: str,
        credentials,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
        auth_request=None,
    ):
        if not spreadsheet_id:
            raise SheetTargetError("GOOGLE_SPREADSHEET_ID not configured")
        self.spreadsheet_id = spreadsheet_id
        self.credentials = credentials
        self.timeout = timeout
        self.transport = transport
        self.auth_request = auth_request

    @classmethod
    def from_service_account(
        cls,
        spreadsheet_id: str,
        client_email: str,
        private_key: str,
        *,
        timeout: float = 10.0,
    ) -> "GoogleSheetsTarget":
        if not spreadsheet_id:
            raise SheetTargetError("GOOGLE_SPREADSHEET_ID not configured")
        if not client_email or not private_key:
            raise SheetTargetError(
                "GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY must be configured"
            )
        info = {
            "type": "service_account",
            "client_email": client_email,
            # env files carry the PEM with literal "\n" sequences
            "private_key": private_key.replace("\\n", "\n"),
            "token_uri": TOKEN_URI,
        }
        try:
            credentials = service_account.Credentials.from_service_account_info(
                info, scopes=SHEETS_SCOPES
            )
        except ValueError as exc:
            raise SheetTargetError(f"Invalid Google service account: {exc}") from exc
        return cls(spreadsheet_id, credentials, timeout=timeout)

    def _access_token(self) -> str:
        if not self.credentials.valid:
            try:
                self.credentials.refresh(self.auth_request or GoogleAuthRequest())
            except GoogleAuthError as exc:
                raise SheetTargetError(f"Google authentication failed: {exc}") from exc
        return self.credentials.token

    def _client(self) -> httpx.Client:
        return httpx.Client(
            headers={"Authorization": f"Bearer {self._access_token()}"},
            timeout=self.timeout,
            transport=self.transport,
        )

    @staticmethod
    def _range(title: str) -> str:
        escaped = title.replace("'", "''")
        return quote(f"'{escaped}'!A1", safe="")

    def _call(self, method: str, suffix: str, **kwargs) -> dict:
        # suffixes like ":batchUpdate" attach directly to the spreadsheet path
        url = f"{self.API_ROOT}/{self.spreadsheet_id}{suffix}"
        try:
            with self._client() as client:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as exc:
            raise SheetTargetError(f"Google Sheets request failed: {exc}") from exc

    def _titles(self) -> set[str]:
        info = self._call("GET", "", params={"fields": "sheets.properties.title"})
        return {s["properties"]["title"] for s in info.get("sheets", [])}

    def ensure_worksheet(self, title: str, headers: Sequence[str]) -> None:
        if title in self._titles():
            return
        self._call("POST", ":batchUpdate", json={
            "requests": [{"addSheet": {"properties": {"title": title}}}],
        })
        self._call(
            "PUT",
            f"/values/{self._range(title)}",
            params={"valueInputOption": "RAW"},
            json={"values": [list(headers)]},
        )

    def append_rows(self, title: str, rows: Sequence[Sequence[Any]]) -> None:
        self._call(
            "POST",
            f"/values/{self._range(title)}:append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": [list(r) for r in rows]},
        )


class WorkbookTarget:
    def __init__(self, path: str):
        self.path = Path(path)

    def _open(self) -> Workbook:
        if self.path.exists():
            return load_workbook(self.path)
        wb = Workbook()
        # drop the default empty sheet; ensure_worksheet adds the real one
        wb.remove(wb.active)
        return wb

    def ensure_worksheet(self, title: str, headers: Sequence[str]) -> None:
        wb = self._open()
        if title in wb.sheetnames:
            return
        ws = wb.create_sheet(title)
        ws.append(list(headers))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(self.path)

    def append_rows(self, title: str, rows: Sequence[Sequence[Any]]) -> None:
        wb = self._open()
        if title not in wb.sheetnames:
            raise SheetTargetError(f"Worksheet '{title}' does not exist")
        ws = wb[title]
        for row in rows:
            ws.append(list(row))
        wb.save(self.path)


def build_target(config) -> SheetTarget:
    """Target selected by EXPORT_TARGET ("google" or "workbook")."""
    kind = (config.get("EXPORT_TARGET") or "workbook").lower()
    if kind == "google":
        return GoogleSheetsTarget.from_service_account(
            config.get("GOOGLE_SPREADSHEET_ID", ""),
            config.get("GOOGLE_SERVICE_ACCOUNT_EMAIL", ""),
            config.get("GOOGLE_PRIVATE_KEY", ""),
            timeout=config.get("OUTBOUND_TIMEOUT_SECONDS", 10.0),
        )
    if kind == "workbook":
        return WorkbookTarget(config.get("EXPORT_WORKBOOK_PATH") or "weigh_tickets_backup.xlsx")
    raise SheetTargetError(f"Unknown EXPORT_TARGET: {kind}")
