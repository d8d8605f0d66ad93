"""In-memory workflow storage."""

from __future__ import annotations

import time
import uuid
from dataclasses import replace
from datetime import datetime

from ..engine.types import StoredWorkflow, WorkflowDefinition


class WorkflowStore:
    """In-memory workflow storage."""

    def __init__(self) -> None:
        self._workflows: dict[str, StoredWorkflow] = {}

    async def create(
        self, definition: WorkflowDefinition, workflow_id: str | None = None
    ) -> StoredWorkflow:
        """Create a new workflow."""
        workflow_id = workflow_id or self._generate_id()
        now = datetime.now()
        stored = StoredWorkflow(
            id=workflow_id,
            name=definition.name,
            definition=replace(definition, id=workflow_id),
            created_at=now,
            updated_at=now,
        )
        self._workflows[workflow_id] = stored
        return stored

    async def get(self, workflow_id: str) -> StoredWorkflow | None:
        """Get a workflow by ID."""
        return self._workflows.get(workflow_id)

    async def get_definition(self, workflow_id: str) -> WorkflowDefinition | None:
        stored = self._workflows.get(workflow_id)
        return stored.definition if stored else None

    async def list(self) -> list[StoredWorkflow]:
        """List all workflows, most recently updated first."""
        return sorted(self._workflows.values(), key=lambda w: w.updated_at, reverse=True)

    async def update(self, workflow_id: str, definition: WorkflowDefinition) -> StoredWorkflow | None:
        """Replace the definition of an existing workflow."""
        existing = self._workflows.get(workflow_id)
        if not existing:
            return None

        existing.definition = replace(
            definition,
            id=workflow_id,
            name=definition.name or existing.name,
            description=(
                definition.description
                if definition.description is not None
                else existing.definition.description
            ),
            settings=definition.settings or existing.definition.settings,
        )
        existing.name = existing.definition.name
        existing.updated_at = datetime.now()
        return existing

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        return self._workflows.pop(workflow_id, None) is not None

    def _generate_id(self) -> str:
        """Generate a unique workflow ID."""
        return f"wf_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"
