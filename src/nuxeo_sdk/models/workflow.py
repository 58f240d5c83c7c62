"""Workflow and task entities.

Workflows, tasks and documents point at each other by id only. Id lists
arrive either as bare strings or as ``{"id": ...}`` objects depending on the
server version; both shapes decode to plain strings.
"""

from __future__ import annotations

from typing import Annotated, Any

import pydantic
from pydantic import BeforeValidator

from nuxeo_sdk.models.base import Entities, Entity, NuxeoBaseModel, PaginableEntities
from nuxeo_sdk.models.field import Field
from nuxeo_sdk.models.timestamp import ISO8601Time


__all__ = [
    "Task",
    "TaskComment",
    "TaskCompletion",
    "TaskInfo",
    "TaskAction",
    "Tasks",
    "Workflow",
    "WorkflowGraph",
    "Workflows",
]


def _reference_id(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, dict):
        return value.get("id", "")
    return value


def _reference_ids(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, list):
        return [_reference_id(item) for item in value]
    return value


ReferenceId = Annotated[str, BeforeValidator(_reference_id)]
ReferenceIds = Annotated[list[str], BeforeValidator(_reference_ids)]


class Workflow(Entity):
    """A running (or modelled) workflow instance."""

    entity_type: str = pydantic.Field(default="workflow", alias="entity-type")
    id: str | None = None
    name: str | None = None
    title: str | None = None
    state: str | None = None
    workflow_model_name: str | None = None
    initiator: ReferenceId | None = None
    attached_document_ids: ReferenceIds = []
    variables: dict[str, Field] = {}
    graph_resource: str | None = None

    def to_start_payload(self) -> dict[str, Any]:
        """Return the body used to start an instance of this workflow model."""
        payload: dict[str, Any] = {
            "entity-type": "workflow",
            "workflowModelName": self.workflow_model_name or self.name,
        }
        if self.attached_document_ids:
            payload["attachedDocumentIds"] = list(self.attached_document_ids)
        if self.variables:
            payload["variables"] = {
                key: value.value for key, value in self.variables.items()
            }
        return payload


class WorkflowGraph(Entity):
    """Nodes and transitions of a workflow, as drawn by the server UI."""

    entity_type: str = pydantic.Field(default="graph", alias="entity-type")
    nodes: list[Field] = []
    transitions: list[Field] = []


class TaskComment(NuxeoBaseModel):
    """A comment left on a task."""

    author: str | None = None
    text: str | None = None
    date: ISO8601Time | None = None


class TaskAction(NuxeoBaseModel):
    """A button offered to the task actor."""

    name: str
    url: str | None = None
    label: str | None = None


class TaskInfo(NuxeoBaseModel):
    """Presentation details of a task."""

    allow_task_reassignment: bool = False
    task_actions: list[TaskAction] = []
    layout_resource: dict[str, Field] = {}
    schemas: list[dict[str, Field]] = []


class Task(Entity):
    """A human task created by a workflow node."""

    entity_type: str = pydantic.Field(default="task", alias="entity-type")
    id: str | None = None
    name: str | None = None
    workflow_instance_id: str | None = None
    workflow_model_name: str | None = None
    workflow_initiator: ReferenceId | None = None
    workflow_title: str | None = None
    workflow_life_cycle_state: str | None = None
    graph_resource: str | None = None
    state: str | None = None
    directive: str | None = None
    created: ISO8601Time | None = None
    due_date: ISO8601Time | None = None
    node_name: str | None = None
    target_document_ids: ReferenceIds = []
    actors: ReferenceIds = []
    delegated_actors: ReferenceIds = []
    comments: list[TaskComment] = []
    variables: dict[str, Field] = {}
    task_info: TaskInfo | None = None


class TaskCompletion(Entity):
    """Body sent to complete, reassign or delegate a task."""

    entity_type: str = pydantic.Field(default="task", alias="entity-type")
    id: str
    comment: str | None = None
    variables: dict[str, Field] = {}


Workflows = Entities[Workflow]
Tasks = PaginableEntities[Task]
