"""Whole-request failures. Row-level problems are reported inside the preview instead."""

from __future__ import annotations


class ImportRejected(Exception):
    """Base class for failures that abort an ingestion request outright."""

    error_code = "import_rejected"
    status_code = 400


class UnsupportedFileType(ImportRejected):
    error_code = "unsupported_file_type"
    status_code = 415


class EmptyUpload(ImportRejected):
    error_code = "file_empty"
    status_code = 400


class UploadTooLarge(ImportRejected):
    error_code = "file_too_large"
    status_code = 413


class UnreadableDocument(ImportRejected):
    error_code = "unreadable_document"
    status_code = 422


class ScopeAccessDenied(ImportRejected):
    error_code = "dashboard_access_denied"
    status_code = 403


class PreviewExpired(ImportRejected):
    error_code = "preview_expired"
    status_code = 410
