"""Rate-limited entry point for document submission."""

from __future__ import annotations

from types import TracebackType
from typing import Protocol

from crpt_api.cancellation import CancelToken
from crpt_api.client import DocumentClient, SubmissionResult
from crpt_api.errors import GateClosed, SubmissionFailed
from crpt_api.gate import AdmissionGate
from crpt_api.logging_config import get_logger
from crpt_api.models import Document
from crpt_api.settings import Settings
from crpt_api.time_window import TimeUnit


class Submitter(Protocol):
    def submit(self, document: Document, signature: str) -> SubmissionResult: ...


class CrptApi:
    """Caps document submissions at ``request_limit`` per ``time_unit``.

    Each call to ``submit_document`` takes one permit (blocking while none is
    available) and then performs exactly one submission. Failed submissions
    still spend their permit.
    """

    def __init__(
        self,
        time_unit: TimeUnit | str,
        request_limit: int,
        *,
        settings: Settings | None = None,
        client: Submitter | None = None,
    ) -> None:
        self._gate = AdmissionGate(time_unit, request_limit)
        self._owned_client: DocumentClient | None = None
        if client is None:
            try:
                self._owned_client = DocumentClient(settings or Settings())
            except Exception:
                self._gate.shutdown()
                raise
            client = self._owned_client
        self._client = client
        self._logger = get_logger("crpt_api.api")

    @classmethod
    def from_settings(cls, settings: Settings) -> CrptApi:
        return cls(settings.window_unit, settings.request_limit, settings=settings)

    @property
    def gate(self) -> AdmissionGate:
        return self._gate

    def submit_document(
        self,
        document: Document,
        signature: str,
        *,
        cancel: CancelToken | None = None,
    ) -> SubmissionResult:
        if self._gate.is_shutdown:
            raise GateClosed("document API is shut down")
        self._gate.acquire(cancel)
        try:
            result = self._client.submit(document, signature)
        except Exception as exc:
            self._logger.info("document submission raised", doc_id=document.doc_id)
            raise SubmissionFailed(
                f"failed to create document: {exc}", cause=exc
            ) from exc
        if not result.ok:
            self._logger.info(
                "document submission failed",
                doc_id=document.doc_id,
                status_code=result.status_code,
            )
            raise SubmissionFailed(
                f"failed to create document: {result.reason}",
                status_code=result.status_code,
                cause=result.error,
            ) from result.error
        return result

    def shutdown(self) -> None:
        """Stop admitting submissions; in-flight calls are left to finish."""
        self._gate.shutdown()

    def close(self) -> None:
        self.shutdown()
        if self._owned_client is not None:
            self._owned_client.close()

    def __enter__(self) -> CrptApi:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
