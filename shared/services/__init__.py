"""Shared services package."""

from .upload_rules import CAR_IMAGE_RULE, DOCUMENT_FILE_RULE, IncomingFile, UploadRule

__all__ = [
    'UploadRule',
    'IncomingFile',
    'CAR_IMAGE_RULE',
    'DOCUMENT_FILE_RULE',
]
