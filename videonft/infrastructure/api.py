import json
import logging
from typing import Any, BinaryIO, Callable, Dict, Optional, Tuple

import requests

from videonft.config.models import PROD_API_ENDPOINT
from videonft.domain.errors import RemoteRequestError
from videonft.domain.models import (
    AnyTask, Asset, ExportTask, TranscodeProfile, UploadSlot, parse_task
)

UPLOAD_CHUNK_SIZE = 1024 * 1024


class ProgressReader:
    """File-like wrapper that reports how much of ``fileobj`` has been read."""

    def __init__(self, fileobj: BinaryIO, total: int, on_progress: Optional[Callable[[float], None]] = None):
        self._fileobj = fileobj
        self._total = total
        self._read = 0
        self._on_progress = on_progress

    def __len__(self) -> int:
        return self._total

    def read(self, size: int = -1) -> bytes:
        chunk = self._fileobj.read(size)
        if chunk:
            self._read += len(chunk)
            if self._on_progress and self._total:
                self._on_progress(min(self._read / self._total, 1.0))
        return chunk

    def __iter__(self):
        while True:
            chunk = self.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


class VodApiClient:
    """Client for the hosted video (VOD) API: assets, tasks, uploads and exports."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        jwt: Optional[str] = None,
        endpoint: str = PROD_API_ENDPOINT,
        timeout: float = 60.0,
        upload_timeout: float = 3600.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"
        elif jwt:
            self.session.headers["Authorization"] = f"JWT {jwt}"
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------ #
    # Raw requests
    # ------------------------------------------------------------------ #

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text
        errors = data.get("errors") if isinstance(data, dict) else None
        if isinstance(errors, list) and errors:
            first = errors[0]
            return first if isinstance(first, str) else json.dumps(first)
        return json.dumps(data)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        full_url = url if url.startswith(("http://", "https://")) else f"{self.endpoint}{url}"
        kwargs.setdefault("timeout", self.timeout)
        self.logger.debug(f"API {method} {full_url}")
        try:
            response = self.session.request(method, full_url, allow_redirects=False, **kwargs)
        except requests.RequestException as e:
            raise RemoteRequestError(method, url, None, "", str(e)) from e

        if not 200 <= response.status_code < 300:
            raise RemoteRequestError(
                method, url, response.status_code, response.reason or "", self._error_message(response)
            )
        return response

    def _request_json(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._request(method, url, json=payload)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteRequestError(
                method, url, response.status_code, response.reason or "", f"Invalid JSON response: {response.text!r}"
            ) from e

    # ------------------------------------------------------------------ #
    # Assets & tasks
    # ------------------------------------------------------------------ #

    def get_asset(self, asset_id: str) -> Asset:
        return Asset.model_validate(self._request_json("GET", f"/api/asset/{asset_id}"))

    def get_task(self, task_id: str) -> AnyTask:
        return parse_task(self._request_json("GET", f"/api/task/{task_id}"))

    def request_upload_url(self, asset_name: str) -> UploadSlot:
        data = self._request_json("POST", "/api/asset/request-upload", {"name": asset_name})
        return UploadSlot.model_validate(data)

    def upload_file(
        self,
        url: str,
        content: BinaryIO,
        size: Optional[int] = None,
        mime_type: Optional[str] = None,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> None:
        """PUTs raw bytes to a direct upload URL obtained via :meth:`request_upload_url`."""
        body: Any = content
        headers = {"Content-Type": mime_type or "application/octet-stream"}
        if size is not None:
            body = ProgressReader(content, size, on_progress)
            headers["Content-Length"] = str(size)
        self._request("PUT", url, data=body, headers=headers, timeout=self.upload_timeout)

    def transcode_asset(self, asset_id: str, name: str, profile: TranscodeProfile) -> Tuple[Asset, AnyTask]:
        data = self._request_json(
            "POST",
            "/api/asset/transcode",
            {"assetId": asset_id, "name": name, "profile": profile.to_api()},
        )
        return Asset.model_validate(data["asset"]), parse_task(data["task"])

    def export_asset(self, asset_id: str, nft_metadata: Optional[Dict[str, Any]] = None) -> ExportTask:
        ipfs: Dict[str, Any] = {}
        if nft_metadata is not None:
            ipfs["nftMetadata"] = nft_metadata
        data = self._request_json("POST", f"/api/asset/{asset_id}/export", {"ipfs": ipfs})
        return ExportTask.model_validate(data["task"])
