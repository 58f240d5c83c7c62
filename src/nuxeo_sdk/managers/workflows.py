"""Workflow instances and models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nuxeo_sdk.managers.base import Manager, quote_segment
from nuxeo_sdk.models import Workflow, WorkflowGraph, Workflows


if TYPE_CHECKING:
    from nuxeo_sdk.options import RequestOptions


__all__ = ["WorkflowManager"]


class WorkflowManager(Manager):
    """Workflow instances (``/workflow``) and models (``/workflowModel``).

    Instances started on documents are handled by
    :meth:`Repository.start_workflow_instance_by_id`.
    """

    async def fetch_workflow_instances(
        self,
        *,
        options: RequestOptions | None = None,
    ) -> Workflows:
        """List the running workflows initiated by the current user."""
        return await self._client.request_into(
            "GET", "/workflow", Workflows, options=options
        )

    async def start_workflow_instance(
        self,
        workflow: Workflow,
        *,
        options: RequestOptions | None = None,
    ) -> Workflow:
        return await self._client.request_into(
            "POST",
            "/workflow",
            Workflow,
            json=workflow.to_start_payload(),
            options=options,
        )

    async def fetch_workflow_instance(
        self,
        workflow_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> Workflow:
        return await self._client.request_into(
            "GET", f"/workflow/{quote_segment(workflow_id)}", Workflow, options=options
        )

    async def cancel_workflow_instance(
        self,
        workflow_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> None:
        await self._client.request_void(
            "DELETE", f"/workflow/{quote_segment(workflow_id)}", options=options
        )

    async def fetch_workflow_instance_graph(
        self,
        workflow_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> WorkflowGraph:
        return await self._client.request_into(
            "GET",
            f"/workflow/{quote_segment(workflow_id)}/graph",
            WorkflowGraph,
            options=options,
        )

    async def fetch_workflow_models(
        self,
        *,
        options: RequestOptions | None = None,
    ) -> Workflows:
        return await self._client.request_into(
            "GET", "/workflowModel", Workflows, options=options
        )

    async def fetch_workflow_model(
        self,
        name: str,
        *,
        options: RequestOptions | None = None,
    ) -> Workflow:
        return await self._client.request_into(
            "GET", f"/workflowModel/{quote_segment(name)}", Workflow, options=options
        )

    async def fetch_workflow_model_graph(
        self,
        name: str,
        *,
        options: RequestOptions | None = None,
    ) -> WorkflowGraph:
        return await self._client.request_into(
            "GET",
            f"/workflowModel/{quote_segment(name)}/graph",
            WorkflowGraph,
            options=options,
        )
