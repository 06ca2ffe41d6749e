"""Core Cloud SQL instance commands: parameter sets and execution paths.

Each command resolves its inputs, once and before any network call, into
exactly one parameter set from a closed group of frozen dataclasses. The
execution functions then branch on that parameter set explicitly and run one
path: a single fetch, a paged list, or a submit-then-wait mutation. This
module is free of CLI concerns (output, prompts) so it can be driven by the
CLI, automation, or tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, Protocol, Union

from sqlops.core.cancel import CancelToken
from sqlops.core.errors import ConfigurationError
from sqlops.core.models import Instance, InstanceRef, ListInstancesRequest, Operation, Page
from sqlops.core.operations import PollPolicy, wait_for_operation
from sqlops.core.pager import fetch_all

log = logging.getLogger(__name__)

ProjectResolver = Callable[[Union[str, None]], Union[str, None]]


class InstancesAdapter(Protocol):
    """Interface for the Cloud SQL instance operations used by the core."""

    def get_instance(self, project: str, name: str) -> Instance:
        """Return the current snapshot of one instance."""
        ...

    def list_instances(self, request: ListInstancesRequest) -> Page:
        """Return one page of instances."""
        ...

    def insert_instance(self, project: str, config: Mapping[str, Any]) -> Operation:
        """Submit an instance creation and return its operation handle."""
        ...

    def delete_instance(self, project: str, name: str) -> Operation:
        """Submit an instance deletion and return its operation handle."""
        ...

    def get_operation(self, project: str, operation_name: str) -> Operation:
        """Return the current state of an operation."""
        ...


@dataclass(frozen=True)
class GetSingle:
    """Fetch one instance by name."""

    project: str
    name: str


@dataclass(frozen=True)
class GetList:
    """List every instance in a project."""

    project: str
    filter: str | None = None
    max_results: int | None = None


@dataclass(frozen=True)
class CreateFromConfig:
    """Create an instance from a pre-built `sql#instance` configuration body."""

    project: str
    config: Mapping[str, Any]

    @property
    def ref(self) -> InstanceRef:
        return InstanceRef(project=self.project, name=str(self.config["name"]))


@dataclass(frozen=True)
class DeleteByName:
    """Delete an instance addressed by project and name."""

    project: str
    instance: str


@dataclass(frozen=True)
class DeleteByInstance:
    """Delete an instance addressed by a previously retrieved snapshot."""

    instance: Instance


GetParams = Union[GetSingle, GetList]
DeleteParams = Union[DeleteByName, DeleteByInstance]


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of a delete command."""

    ref: InstanceRef
    deleted: bool
    operation: Operation | None = None


def _require_project(project: str | None, resolve_project: ProjectResolver) -> str:
    """Resolve the project or fail before any network call."""
    resolved = resolve_project(project)
    if not resolved:
        raise ConfigurationError(
            "No project given and none configured. "
            "Pass --project or set one with `gcloud config set project`."
        )
    return resolved


def resolve_get_params(
    *,
    name: str | None,
    project: str | None,
    resolve_project: ProjectResolver,
    filter_: str | None = None,
    max_results: int | None = None,
) -> GetParams:
    """
    Pick the parameter set for a get invocation.

    A name selects GetSingle; no name selects GetList. List-only options
    combined with a name match neither set.
    """
    if name is not None:
        if filter_ is not None or max_results is not None:
            raise ConfigurationError("--filter and --max-results cannot be combined with a name.")
        if not name.strip():
            raise ConfigurationError("Instance name must not be empty.")
        return GetSingle(project=_require_project(project, resolve_project), name=name)

    if max_results is not None and max_results < 1:
        raise ConfigurationError("--max-results must be >= 1.")
    return GetList(
        project=_require_project(project, resolve_project),
        filter=filter_,
        max_results=max_results,
    )


def resolve_create_params(
    *,
    config: Mapping[str, Any] | None,
    project: str | None,
    resolve_project: ProjectResolver,
) -> CreateFromConfig:
    """
    Validate a create invocation.

    The project comes from the explicit value, then from the configuration
    body, then from ambient configuration.
    """
    if not isinstance(config, Mapping):
        raise ConfigurationError("An instance configuration object is required.")
    name = config.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("The instance configuration must have a non-empty 'name'.")

    resolved = _require_project(project or config.get("project"), resolve_project)
    return CreateFromConfig(project=resolved, config={**config, "project": resolved})


def _coerce_instance(obj: Instance | Mapping[str, Any]) -> Instance:
    """Accept either a snapshot or a raw `sql#instance` mapping."""
    if isinstance(obj, Instance):
        return obj
    if isinstance(obj, Mapping):
        return Instance.from_api(obj)
    raise ConfigurationError(f"Unsupported instance object: {type(obj).__name__}")


def resolve_delete_params(
    *,
    instance_name: str | None,
    instance_object: Instance | Mapping[str, Any] | None,
    project: str | None,
    resolve_project: ProjectResolver,
) -> DeleteParams:
    """
    Pick the parameter set for a delete invocation.

    DeleteByInstance takes its identity from the object alone and never
    consults ambient configuration.
    """
    if instance_name is not None and instance_object is not None:
        raise ConfigurationError("Pass either an instance name or an instance object, not both.")

    if instance_object is not None:
        if project is not None:
            raise ConfigurationError("--project cannot be combined with an instance object.")
        instance = _coerce_instance(instance_object)
        if not instance.name or not instance.project:
            raise ConfigurationError("The instance object must carry both 'name' and 'project'.")
        return DeleteByInstance(instance=instance)

    if instance_name is not None:
        if not instance_name.strip():
            raise ConfigurationError("Instance name must not be empty.")
        return DeleteByName(
            project=_require_project(project, resolve_project), instance=instance_name
        )

    raise ConfigurationError("An instance name or an instance object is required.")


def get_instances(
    adapter: InstancesAdapter,
    params: GetParams,
    *,
    cancel: CancelToken | None = None,
) -> Iterator[Instance]:
    """
    Yield the instance(s) selected by `params`.

    GetSingle issues one fetch. GetList streams every page lazily, so items
    are produced as pages arrive.
    """
    if isinstance(params, GetSingle):
        yield adapter.get_instance(params.project, params.name)
    elif isinstance(params, GetList):
        request = ListInstancesRequest(
            project=params.project,
            filter=params.filter,
            max_results=params.max_results,
        )
        yield from fetch_all(adapter, request, cancel=cancel)
    else:
        raise ConfigurationError(f"Unknown parameter set for get: {type(params).__name__}")


def create_instance(
    adapter: InstancesAdapter,
    params: CreateFromConfig,
    *,
    policy: PollPolicy | None = None,
    cancel: CancelToken | None = None,
    on_poll: Callable[[Operation], None] | None = None,
    on_submit: Callable[[Operation], None] | None = None,
) -> Instance:
    """
    Create an instance and return its state once the operation is DONE.

    The returned snapshot comes from a fresh fetch by identity, not from the
    operation payload: server-assigned fields such as connection endpoints
    are only guaranteed after completion.
    """
    if not isinstance(params, CreateFromConfig):
        raise ConfigurationError(f"Unknown parameter set for create: {type(params).__name__}")

    ref = params.ref
    op = adapter.insert_instance(ref.project, params.config)
    log.debug("Submitted create of %s as operation %s", ref, op.name)
    if on_submit is not None:
        on_submit(op)

    wait_for_operation(adapter, ref.project, op, policy=policy, cancel=cancel, on_poll=on_poll)
    return adapter.get_instance(ref.project, ref.name)


def delete_target(params: DeleteParams) -> InstanceRef:
    """Return the identity a delete parameter set addresses."""
    if isinstance(params, DeleteByName):
        return InstanceRef(project=params.project, name=params.instance)
    if isinstance(params, DeleteByInstance):
        return params.instance.ref
    raise ConfigurationError(f"Unknown parameter set for delete: {type(params).__name__}")


def delete_instance(
    adapter: InstancesAdapter,
    params: DeleteParams,
    *,
    confirm: Callable[[str], bool],
    force: bool = False,
    policy: PollPolicy | None = None,
    cancel: CancelToken | None = None,
    on_poll: Callable[[Operation], None] | None = None,
    on_submit: Callable[[Operation], None] | None = None,
) -> DeleteResult:
    """
    Delete an instance after the confirmation gate, then wait for completion.

    When `force` is False, `confirm` is asked whether the deletion of
    `project/name` should proceed; declining makes no network call at all.
    """
    ref = delete_target(params)

    if not force and not confirm(str(ref)):
        log.debug("Delete of %s declined", ref)
        return DeleteResult(ref=ref, deleted=False)

    op = adapter.delete_instance(ref.project, ref.name)
    log.debug("Submitted delete of %s as operation %s", ref, op.name)
    if on_submit is not None:
        on_submit(op)

    final = wait_for_operation(
        adapter, ref.project, op, policy=policy, cancel=cancel, on_poll=on_poll
    )
    return DeleteResult(ref=ref, deleted=True, operation=final)
