from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .cli_shared import (
    InvalidSubcommandError,
    MgrOpts,
    MissingServiceError,
    _debug,
    _print_json,
    _print_lines,
    _session,
    short_name,
)
from .ecs_client import EcsClient


@dataclass
class EcsContext:
    client: EcsClient


def build_ecs_context(g: MgrOpts) -> EcsContext:
    return EcsContext(client=EcsClient(_session(g), region=g.region))


def _sorted_short_names(arns: list[str]) -> list[str]:
    return sorted(short_name(a) for a in arns)


def _service_names(ctx: EcsContext, g: MgrOpts) -> list[str]:
    return _sorted_short_names(ctx.client.list_service_arns(g.cluster))


def _update_summary(g: MgrOpts, service: str, svc: dict[str, Any], count: int) -> dict[str, Any]:
    return {
        "cluster": g.cluster,
        "serviceName": str(svc.get("serviceName") or service),
        "desiredCount": svc.get("desiredCount", count),
        "runningCount": svc.get("runningCount"),
        "status": svc.get("status"),
    }


def cmd_list_services(g: MgrOpts) -> int:
    ctx = build_ecs_context(g)
    _debug(g, f"[DEBUG] listing services for cluster: {g.cluster}")
    _print_lines(_service_names(ctx, g))
    return 0


def cmd_list_tasks(g: MgrOpts) -> int:
    ctx = build_ecs_context(g)
    _debug(g, f"[INFO] tasks for service: {g.service} in cluster: {g.cluster}")
    _print_lines(_sorted_short_names(ctx.client.list_task_arns(g.cluster, g.service)))
    return 0


def cmd_list_task_arns(g: MgrOpts) -> int:
    ctx = build_ecs_context(g)
    _debug(g, f"[INFO] task arns for service: {g.service} in cluster: {g.cluster}")
    refs = ctx.client.describe_task_definitions(g.cluster, [g.service])
    _print_lines(_sorted_short_names([r for r in refs.values() if r]))
    return 0


def cmd_list_all_task_arns(g: MgrOpts) -> int:
    ctx = build_ecs_context(g)
    _debug(g, f"[INFO] all task arns for cluster: {g.cluster}")
    for svc in _service_names(ctx, g):
        refs = ctx.client.describe_task_definitions(g.cluster, [svc])
        _print_lines(short_name(r) for r in refs.values() if r)
    return 0


def _set_one(g: MgrOpts, count: int, verb: str) -> int:
    ctx = build_ecs_context(g)
    _debug(g, f"[INFO] {verb} service: {g.service} in cluster: {g.cluster}")
    svc = ctx.client.set_desired_count(g.cluster, g.service, count)
    _print_json(_update_summary(g, g.service, svc, count))
    return 0


def _set_all(g: MgrOpts, count: int, verb: str) -> int:
    ctx = build_ecs_context(g)
    _debug(g, f"[INFO] {verb} all services in cluster: {g.cluster}")
    # A failing service halts the loop; later services are left untouched.
    for svc in _service_names(ctx, g):
        ctx.client.set_desired_count(g.cluster, svc, count)
    return 0


def cmd_start(g: MgrOpts) -> int:
    return _set_one(g, 1, "starting")


def cmd_stop(g: MgrOpts) -> int:
    return _set_one(g, 0, "stopping")


def cmd_start_all(g: MgrOpts) -> int:
    return _set_all(g, 1, "starting")


def cmd_stop_all(g: MgrOpts) -> int:
    return _set_all(g, 0, "stopping")


@dataclass(frozen=True)
class Subcommand:
    name: str
    handler: Callable[[MgrOpts], int]
    requires_service: bool
    help: str


SUBCOMMANDS: dict[str, Subcommand] = {
    s.name: s
    for s in (
        Subcommand("list_services", cmd_list_services, False, "list all services in a cluster"),
        Subcommand("list_tasks", cmd_list_tasks, True, "list all tasks for a service in a cluster"),
        Subcommand(
            "list_task_arns",
            cmd_list_task_arns,
            True,
            "list the task definitions for a service in a cluster",
        ),
        # Requires -s even though every service in the cluster is walked.
        Subcommand(
            "list_all_task_arns",
            cmd_list_all_task_arns,
            True,
            "list all task definitions for all services in a cluster",
        ),
        Subcommand("start", cmd_start, True, "start a service in a cluster"),
        Subcommand("stop", cmd_stop, True, "stop a service in a cluster"),
        Subcommand("start_all", cmd_start_all, False, "start all services in a cluster"),
        Subcommand("stop_all", cmd_stop_all, False, "stop all services in a cluster"),
    )
}


def resolve_subcommand(g: MgrOpts) -> Subcommand:
    sub = SUBCOMMANDS.get(g.execute)
    if sub is None:
        raise InvalidSubcommandError(f"invalid subcommand specified: {g.execute!r}")
    if sub.requires_service and not g.service:
        raise MissingServiceError("no service specified as arg. need one of -s|--service <service>")
    return sub


def dispatch(g: MgrOpts) -> int:
    return resolve_subcommand(g).handler(g)
