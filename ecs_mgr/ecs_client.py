from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .cli_shared import TransportError, UsageError, _eprint

# Largest page ListServices accepts; further pages are not followed.
LIST_SERVICES_MAX_RESULTS = 100


class EcsClient:
    """Thin adapter over the boto3 ECS client.

    Returns the raw ARNs and documents ECS hands back; trimming and sorting
    is left to the commands. Every failed call surfaces as TransportError.
    """

    def __init__(self, session: Any, *, region: str) -> None:
        self.region = region
        try:
            self._ecs = session.client("ecs", region_name=region)
        except BotoCoreError as e:
            raise TransportError(f"ecs client setup failed ({region}): {e}") from e

    def _call(self, op: str, label: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = getattr(self._ecs, op)(**kwargs)
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f"ecs {label} failed ({self.region}): {e}") from e
        return resp if isinstance(resp, dict) else {}

    def list_service_arns(self, cluster: str) -> list[str]:
        resp = self._call(
            "list_services",
            "list-services",
            cluster=cluster,
            maxResults=LIST_SERVICES_MAX_RESULTS,
        )
        if resp.get("nextToken"):
            _eprint(
                f"[WARN] cluster {cluster!r} has more than {LIST_SERVICES_MAX_RESULTS} services; "
                "only the first page is listed"
            )
        return [str(a) for a in (resp.get("serviceArns") or [])]

    def list_task_arns(self, cluster: str, service: str) -> list[str]:
        resp = self._call("list_tasks", "list-tasks", cluster=cluster, serviceName=service)
        return [str(a) for a in (resp.get("taskArns") or [])]

    def describe_task_definitions(self, cluster: str, services: list[str]) -> dict[str, str]:
        if not services:
            return {}
        resp = self._call("describe_services", "describe-services", cluster=cluster, services=list(services))
        failures = [f for f in (resp.get("failures") or []) if isinstance(f, dict)]
        if failures:
            detail = ", ".join(
                f"{f.get('arn', '?')}: {f.get('reason', 'unknown')}" for f in failures
            )
            raise TransportError(f"ecs describe-services failed for cluster {cluster!r}: {detail}")
        out: dict[str, str] = {}
        for svc in resp.get("services") or []:
            if not isinstance(svc, dict):
                continue
            name = str(svc.get("serviceName") or "").strip()
            if name:
                out[name] = str(svc.get("taskDefinition") or "").strip()
        return out

    def set_desired_count(self, cluster: str, service: str, count: int) -> dict[str, Any]:
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise UsageError(f"desired count must be a non-negative integer, got {count!r}")
        resp = self._call(
            "update_service",
            "update-service",
            cluster=cluster,
            service=service,
            desiredCount=count,
        )
        svc = resp.get("service")
        return svc if isinstance(svc, dict) else {}
