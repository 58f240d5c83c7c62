"""Directories (vocabularies and other tabular data)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nuxeo_sdk.managers.base import Manager, quote_segment
from nuxeo_sdk.models import Directories, DirectoryEntries, DirectoryEntry


if TYPE_CHECKING:
    from nuxeo_sdk.options import RequestOptions, SortedPaginationOptions


__all__ = ["DirectoryManager"]


class DirectoryManager(Manager):
    """Entries of ``/directory/<name>``."""

    def _entry_path(self, directory: str, entry_id: str) -> str:
        return f"/directory/{quote_segment(directory)}/{quote_segment(entry_id)}"

    async def fetch_directories(
        self,
        *,
        options: RequestOptions | None = None,
    ) -> Directories:
        return await self._client.request_into(
            "GET", "/directory", Directories, options=options
        )

    async def fetch_directory_entries(
        self,
        directory: str,
        pagination: SortedPaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> DirectoryEntries:
        """List the entries of a directory, optionally sorted and paged."""
        return await self._client.request_into(
            "GET",
            f"/directory/{quote_segment(directory)}",
            DirectoryEntries,
            params=pagination,
            options=options,
        )

    async def create_directory_entry(
        self,
        directory: str,
        entry: DirectoryEntry,
        *,
        options: RequestOptions | None = None,
    ) -> DirectoryEntry:
        if entry.directory_name is None:
            entry = entry.model_copy(update={"directory_name": directory})
        return await self._client.request_into(
            "POST",
            f"/directory/{quote_segment(directory)}",
            DirectoryEntry,
            json=entry.to_payload(),
            options=options,
        )

    async def fetch_directory_entry(
        self,
        directory: str,
        entry_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> DirectoryEntry:
        return await self._client.request_into(
            "GET",
            self._entry_path(directory, entry_id),
            DirectoryEntry,
            options=options,
        )

    async def update_directory_entry(
        self,
        directory: str,
        entry: DirectoryEntry,
        *,
        options: RequestOptions | None = None,
    ) -> DirectoryEntry:
        if entry.directory_name is None:
            entry = entry.model_copy(update={"directory_name": directory})
        return await self._client.request_into(
            "PUT",
            self._entry_path(directory, entry.entry_id),
            DirectoryEntry,
            json=entry.to_payload(),
            options=options,
        )

    async def delete_directory_entry(
        self,
        directory: str,
        entry_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> None:
        await self._client.request_void(
            "DELETE", self._entry_path(directory, entry_id), options=options
        )
