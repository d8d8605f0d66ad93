"""Workflow repository for database persistence."""

from __future__ import annotations

import time
import uuid
from dataclasses import replace
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..db.models import WorkflowModel
from ..engine.graph import definition_from_dict, definition_to_dict
from ..engine.types import StoredWorkflow, WorkflowDefinition


class WorkflowRepository:
    """Repository for workflow persistence."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, definition: WorkflowDefinition, workflow_id: str | None = None
    ) -> StoredWorkflow:
        """Create a new workflow."""
        workflow_id = workflow_id or self._generate_id()
        now = datetime.now()

        db_workflow = WorkflowModel(
            id=workflow_id,
            name=definition.name,
            description=definition.description,
            definition=self._definition_body(definition),
            created_at=now,
            updated_at=now,
        )

        self._session.add(db_workflow)
        await self._session.commit()
        await self._session.refresh(db_workflow)

        return self._to_stored_workflow(db_workflow)

    async def get(self, workflow_id: str) -> StoredWorkflow | None:
        """Get a workflow by ID."""
        result = await self._session.get(WorkflowModel, workflow_id)
        if not result:
            return None
        return self._to_stored_workflow(result)

    async def get_definition(self, workflow_id: str) -> WorkflowDefinition | None:
        """Workflow-store contract used by the execution pipeline."""
        stored = await self.get(workflow_id)
        return stored.definition if stored else None

    async def list(self) -> list[StoredWorkflow]:
        """List all workflows."""
        statement = select(WorkflowModel).order_by(WorkflowModel.updated_at.desc())
        result = await self._session.execute(statement)
        workflows = result.scalars().all()
        return [self._to_stored_workflow(w) for w in workflows]

    async def update(self, workflow_id: str, definition: WorkflowDefinition) -> StoredWorkflow | None:
        """Replace the definition of an existing workflow."""
        db_workflow = await self._session.get(WorkflowModel, workflow_id)
        if not db_workflow:
            return None

        if definition.name:
            db_workflow.name = definition.name
        if definition.description is not None:
            db_workflow.description = definition.description

        body = self._definition_body(definition)
        if not definition.settings:
            body["settings"] = db_workflow.definition.get("settings", {})
        db_workflow.definition = body
        db_workflow.updated_at = datetime.now()

        await self._session.commit()
        await self._session.refresh(db_workflow)

        return self._to_stored_workflow(db_workflow)

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        db_workflow = await self._session.get(WorkflowModel, workflow_id)
        if not db_workflow:
            return False

        await self._session.delete(db_workflow)
        await self._session.commit()
        return True

    def _generate_id(self) -> str:
        """Generate a unique workflow ID."""
        return f"wf_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"

    def _definition_body(self, definition: WorkflowDefinition) -> dict:
        body = definition_to_dict(definition)
        return {"nodes": body["nodes"], "settings": body["settings"]}

    def _to_stored_workflow(self, db_workflow: WorkflowModel) -> StoredWorkflow:
        """Convert database model to StoredWorkflow."""
        definition = definition_from_dict(db_workflow.definition, workflow_id=db_workflow.id)
        definition = replace(
            definition,
            name=db_workflow.name,
            description=db_workflow.description,
        )
        return StoredWorkflow(
            id=db_workflow.id,
            name=db_workflow.name,
            definition=definition,
            created_at=db_workflow.created_at,
            updated_at=db_workflow.updated_at,
        )
