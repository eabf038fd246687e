"""HTTP collaborator that submits one document per call."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from types import TracebackType

import httpx

from crpt_api.logging_config import get_logger
from crpt_api.models import Document
from crpt_api.settings import Settings

DOCUMENT_FORMAT = "MANUAL"
DOCUMENT_TYPE = "LP_INTRODUCE_GOODS"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a single submission attempt."""

    ok: bool
    status_code: int | None = None
    body: str = ""
    error: BaseException | None = None

    @property
    def reason(self) -> str:
        if self.ok:
            return f"status {self.status_code}"
        if isinstance(self.error, httpx.HTTPError):
            return f"transport error: {self.error}"
        if self.error is not None:
            return str(self.error)
        return f"API error: {self.status_code}"


def _b64(raw: str) -> str:
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def build_request_body(document: Document, signature: str, *, product_group: str) -> dict[str, str]:
    return {
        "document_format": DOCUMENT_FORMAT,
        "product_document": _b64(document.to_json()),
        "product_group": product_group,
        "signature": _b64(signature),
        "type": DOCUMENT_TYPE,
    }


class DocumentClient:
    """Thin HTTP client around the document creation endpoint."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._url = settings.base_url
        self._http = httpx.Client(timeout=settings.timeout_s, transport=transport)
        self._logger = get_logger("crpt_api.client")

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> DocumentClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def submit(self, document: Document, signature: str) -> SubmissionResult:
        """Post one document; failures are returned, never raised."""
        token = self.settings.token.strip()
        if not token:
            return SubmissionResult(
                ok=False,
                error=ValueError("missing API token; set CRPT_API_TOKEN"),
            )
        product_group = self.settings.product_group
        body = build_request_body(document, signature, product_group=product_group)
        try:
            response = self._http.post(
                self._url,
                params={"pg": product_group},
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {token}",
                },
                content=json.dumps(body),
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._logger.warning("submission transport error", error=str(exc))
            return SubmissionResult(ok=False, error=exc)

        if not response.is_success:
            self._logger.warning(
                "submission rejected",
                status_code=response.status_code,
                doc_id=document.doc_id,
            )
            return SubmissionResult(ok=False, status_code=response.status_code, body=response.text)
        return SubmissionResult(ok=True, status_code=response.status_code, body=response.text)
