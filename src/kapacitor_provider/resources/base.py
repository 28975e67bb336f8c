# ABOUTME: Task-backed resource lifecycle shared by every resource kind
# ABOUTME: Maps create/read/update/delete of a resource onto Kapacitor task calls

"""
Task-backed resource lifecycle.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Every resource kind this provider manages is stored remotely as one
Kapacitor task. Reconciling a resource therefore means:

    create -> POST the task, remember its id, read it back
    read   -> GET the task and copy its state into the resource data
    update -> PATCH the task, read it back
    delete -> DELETE the task, forget its id

The lifecycle functions take the resource data AND the client explicitly:

    await create(data, client)

There is no global client; the caller owns the KapacitorClient and passes
it in.

=============================================================================
STATE TRANSITIONS
=============================================================================

    absent --create--> present --read/update--> present --delete--> absent

A resource is "present" while data.id is non-empty. When read finds the
remote task gone, it clears data.id and returns normally; the caller then
treats the resource as absent instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from kapacitor_provider.utils import identifiers
from kapacitor_provider.utils.client import (
    CreateTaskOptions,
    KapacitorError,
    TaskStatus,
    TaskType,
    UpdateTaskOptions,
)

if TYPE_CHECKING:
    from kapacitor_provider.utils.client import KapacitorClient, Task

logger = structlog.get_logger(__name__)


class TaskResourceData(BaseModel):
    """
    Fields shared by every task-backed resource.

    validate_assignment=True re-validates fields written back by read, so
    the object never holds a value of the wrong type.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: str = Field(default="", description="Task id (computed)")
    type: TaskType = Field(default=TaskType.STREAM, description="stream or batch")
    status: TaskStatus = Field(default=TaskStatus.ENABLED, description="enabled or disabled")
    tick_script: str = Field(description="TICKscript source")
    database_retention_policies: list[str] = Field(
        default_factory=list,
        description='Databases/retention policies, e.g. "telegraf"."autogen"',
    )

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: object) -> object:
        """Match "STREAM", "Batch", ... case-insensitively."""
        return TaskType.parse(v) if isinstance(v, str) else v

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: object) -> object:
        return TaskStatus.parse(v) if isinstance(v, str) else v

    def to_create_options(self) -> CreateTaskOptions:
        """
        Build the task request from this resource's fields.

        Everything is validated before any remote call is made.

        Raises:
            MalformedIdentifierError: On a malformed retention policy entry
        """
        return CreateTaskOptions(
            type=self.type,
            status=self.status,
            script=self.tick_script,
            dbrps=identifiers.parse(self.database_retention_policies),
        )

    def apply_task(self, task: Task) -> None:
        """Copy remote task state into this resource."""
        self.type = task.type
        self.database_retention_policies = identifiers.serialize(task.dbrps)
        self.tick_script = task.script.strip("\n")
        self.status = task.status
        self.id = task.id


async def create(data: TaskResourceData, client: KapacitorClient) -> None:
    """
    Create the remote task for data, then read it back.

    Raises:
        ValueError: If data already carries an id (ids are assigned by Kapacitor)
    """
    if data.id:
        raise ValueError(f"id is computed and cannot be set on create (got '{data.id}')")
    options = data.to_create_options()

    task = await client.create_task(options)
    logger.info("Created task", task_id=task.id)

    data.id = task.id
    await read(data, client)


async def read(data: TaskResourceData, client: KapacitorClient) -> None:
    """
    Refresh data from the remote task.

    Clears data.id when the task no longer exists.
    """
    task = await client.get_task(client.task_link(data.id))

    if task is not None and task.id:
        data.apply_task(task)
    else:
        logger.info("Task no longer exists", task_id=data.id)
        data.id = ""


async def update(data: TaskResourceData, client: KapacitorClient) -> None:
    """
    Push data's fields to the remote task, then read it back.

    A 204 No Content answer is success; every other error propagates.
    """
    options = data.to_create_options()

    try:
        await client.update_task(
            client.task_link(data.id),
            UpdateTaskOptions(
                id=data.id,
                type=options.type,
                script=options.script,
                status=options.status,
            ),
        )
    except KapacitorError as e:
        if e.code != HTTPStatus.NO_CONTENT:
            raise
        logger.debug("Update answered with no content", task_id=data.id)

    await read(data, client)


async def delete(data: TaskResourceData, client: KapacitorClient) -> None:
    """Delete the remote task and mark data as absent."""
    await client.delete_task(client.task_link(data.id))
    logger.info("Deleted task", task_id=data.id)
    data.id = ""


@dataclass(frozen=True)
class Resource:
    """
    A resource kind: its name, its schema, and its lifecycle.

        resource = get_resource("kapacitor_tick_script")
        data = resource.load({"tick_script": "stream|from()"})
        await resource.create(data, client)
    """

    name: str
    schema: type[TaskResourceData]

    def load(self, attributes: dict[str, object]) -> TaskResourceData:
        """
        Validate raw attributes against this kind's schema.

        Raises:
            pydantic.ValidationError: On missing, unknown or mistyped fields
        """
        return self.schema.model_validate(attributes)

    async def create(self, data: TaskResourceData, client: KapacitorClient) -> None:
        await create(data, client)

    async def read(self, data: TaskResourceData, client: KapacitorClient) -> None:
        await read(data, client)

    async def update(self, data: TaskResourceData, client: KapacitorClient) -> None:
        await update(data, client)

    async def delete(self, data: TaskResourceData, client: KapacitorClient) -> None:
        await delete(data, client)
