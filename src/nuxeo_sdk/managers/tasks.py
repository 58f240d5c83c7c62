"""Workflow tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nuxeo_sdk.managers.base import Manager, quote_segment
from nuxeo_sdk.models import Task, TaskCompletion, Tasks
from nuxeo_sdk.options import merge_query_params


if TYPE_CHECKING:
    from nuxeo_sdk.options import RequestOptions


__all__ = ["TaskManager"]


class TaskManager(Manager):
    """Lists, reassigns, delegates and completes tasks.

    Example:
        ```python
        tasks = await client.tasks.fetch_tasks(user_id="Administrator")
        task = tasks.entries[0]
        await client.tasks.complete_task(
            task.id,
            "validate",
            TaskCompletion(id=task.id, comment="LGTM"),
        )
        ```
    """

    async def fetch_tasks(
        self,
        *,
        user_id: str | None = None,
        workflow_instance_id: str | None = None,
        workflow_model_name: str | None = None,
        options: RequestOptions | None = None,
    ) -> Tasks:
        """List tasks, filtered by actor, workflow instance or model."""
        params = merge_query_params(
            {
                "userId": user_id or None,
                "workflowInstanceId": workflow_instance_id or None,
                "workflowModelName": workflow_model_name or None,
            }
        )
        return await self._client.request_into(
            "GET", "/task", Tasks, params=params, options=options
        )

    async def fetch_task(
        self,
        task_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> Task:
        return await self._client.request_into(
            "GET", f"/task/{quote_segment(task_id)}", Task, options=options
        )

    async def reassign_task(
        self,
        task_id: str,
        actors: str,
        comment: str = "",
        *,
        options: RequestOptions | None = None,
    ) -> Task:
        """Replace the actors of a task.

        Args:
            task_id: The task id.
            actors: Comma-separated prefixed actors (``user:jdoe``).
            comment: Optional comment.
            options: Per-call request options.
        """
        return await self._client.request_into(
            "PUT",
            f"/task/{quote_segment(task_id)}/reassign",
            Task,
            params={"actors": actors or None, "comment": comment or None},
            options=options,
        )

    async def delegate_task(
        self,
        task_id: str,
        actors: str,
        comment: str = "",
        *,
        options: RequestOptions | None = None,
    ) -> Task:
        """Delegate a task to other actors, keeping the current ones."""
        return await self._client.request_into(
            "PUT",
            f"/task/{quote_segment(task_id)}/delegate",
            Task,
            params={"delegatedActors": actors or None, "comment": comment or None},
            options=options,
        )

    async def complete_task(
        self,
        task_id: str,
        action: str,
        completion: TaskCompletion | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Task:
        """Complete a task with one of its actions (e.g. ``validate``).

        Args:
            task_id: The task id.
            action: The action id, as listed in the task ``actions``.
            completion: Comment and variables; an empty one is sent if omitted.
            options: Per-call request options.
        """
        completion = completion or TaskCompletion(id=task_id)
        return await self._client.request_into(
            "PUT",
            f"/task/{quote_segment(task_id)}/{quote_segment(action)}",
            Task,
            json=completion.to_payload(),
            options=options,
        )
