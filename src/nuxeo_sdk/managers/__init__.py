"""API managers grouping the calls of one REST resource family."""

from __future__ import annotations

from nuxeo_sdk.managers.base import Manager, quote_path, quote_segment, quote_xpath
from nuxeo_sdk.managers.batch_upload import BatchUploadManager
from nuxeo_sdk.managers.capabilities import CapabilitiesManager
from nuxeo_sdk.managers.data_model import DataModelManager
from nuxeo_sdk.managers.directories import DirectoryManager
from nuxeo_sdk.managers.operations import OperationManager
from nuxeo_sdk.managers.repository import (
    DEFAULT_BLOB_XPATH,
    DEFAULT_REPOSITORY,
    Repository,
)
from nuxeo_sdk.managers.tasks import TaskManager
from nuxeo_sdk.managers.users import UserManager
from nuxeo_sdk.managers.workflows import WorkflowManager


__all__ = [
    "DEFAULT_BLOB_XPATH",
    "DEFAULT_REPOSITORY",
    "BatchUploadManager",
    "CapabilitiesManager",
    "DataModelManager",
    "DirectoryManager",
    "Manager",
    "OperationManager",
    "Repository",
    "TaskManager",
    "UserManager",
    "WorkflowManager",
    "quote_path",
    "quote_segment",
    "quote_xpath",
]
