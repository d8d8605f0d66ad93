"""Workflow service for business logic."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

from ..core.exceptions import WorkflowNotFoundError
from ..engine.graph import definition_from_dict, definition_to_dict, validate_graph
from ..engine.types import StoredWorkflow, WorkflowDefinition
from ..schemas.workflow import (
    NodeSpecSchema,
    WorkflowCreateRequest,
    WorkflowDetailResponse,
    WorkflowListItem,
    WorkflowResponse,
    WorkflowUpdateRequest,
)

if TYPE_CHECKING:
    from ..repositories import WorkflowRepository


class WorkflowService:
    """Service for workflow operations."""

    def __init__(self, workflow_repo: WorkflowRepository) -> None:
        self._workflow_repo = workflow_repo

    async def list_workflows(self) -> list[WorkflowListItem]:
        """List all workflows."""
        workflows = await self._workflow_repo.list()
        return [
            WorkflowListItem(
                id=w.id,
                name=w.name,
                description=w.definition.description,
                node_count=len(w.definition.nodes),
                created_at=w.created_at.isoformat(),
                updated_at=w.updated_at.isoformat(),
            )
            for w in workflows
        ]

    async def get_workflow(self, workflow_id: str) -> WorkflowDetailResponse:
        """Get a workflow by ID."""
        stored = await self._workflow_repo.get(workflow_id)
        if not stored:
            raise WorkflowNotFoundError(workflow_id)
        return self._detail(stored)

    async def create_workflow(self, request: WorkflowCreateRequest) -> WorkflowResponse:
        """Create a new workflow. Malformed graphs are rejected before saving."""
        definition = self._build_definition(
            name=request.name,
            description=request.description,
            settings=request.settings,
            nodes=request.nodes,
        )
        validate_graph(definition)

        stored = await self._workflow_repo.create(definition, workflow_id=request.id)
        return WorkflowResponse(
            id=stored.id,
            name=stored.name,
            created_at=stored.created_at.isoformat(),
        )

    async def update_workflow(
        self, workflow_id: str, request: WorkflowUpdateRequest
    ) -> WorkflowDetailResponse:
        """Update an existing workflow."""
        existing = await self._workflow_repo.get(workflow_id)
        if not existing:
            raise WorkflowNotFoundError(workflow_id)

        if request.nodes is not None:
            definition = self._build_definition(
                name=request.name or existing.name,
                description=request.description,
                settings=request.settings or {},
                nodes=request.nodes,
            )
        else:
            definition = replace(
                existing.definition,
                name=request.name or existing.name,
                description=request.description,
                settings=request.settings or {},
            )
        validate_graph(definition)

        stored = await self._workflow_repo.update(workflow_id, definition)
        if not stored:
            raise WorkflowNotFoundError(workflow_id)
        return self._detail(stored)

    async def delete_workflow(self, workflow_id: str) -> None:
        """Delete a workflow."""
        deleted = await self._workflow_repo.delete(workflow_id)
        if not deleted:
            raise WorkflowNotFoundError(workflow_id)

    def _build_definition(
        self,
        name: str,
        description: str | None,
        settings: dict[str, Any],
        nodes: list[NodeSpecSchema],
    ) -> WorkflowDefinition:
        return definition_from_dict(
            {
                "name": name,
                "description": description,
                "settings": settings,
                "nodes": [n.model_dump(exclude_none=True) for n in nodes],
            }
        )

    def _detail(self, stored: StoredWorkflow) -> WorkflowDetailResponse:
        return WorkflowDetailResponse(
            id=stored.id,
            name=stored.name,
            description=stored.definition.description,
            definition=definition_to_dict(stored.definition),
            created_at=stored.created_at.isoformat(),
            updated_at=stored.updated_at.isoformat(),
        )
