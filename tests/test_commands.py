import json

import pytest

from ecs_mgr.cli_shared import InvalidSubcommandError
from ecs_mgr.cli_shared import MgrOpts
from ecs_mgr.cli_shared import MissingServiceError
from ecs_mgr.cli_shared import TransportError
from ecs_mgr.cli_shared import short_name
from ecs_mgr.commands import SUBCOMMANDS
from ecs_mgr.commands import EcsContext
from ecs_mgr.commands import cmd_list_all_task_arns
from ecs_mgr.commands import cmd_list_services
from ecs_mgr.commands import cmd_list_task_arns
from ecs_mgr.commands import cmd_list_tasks
from ecs_mgr.commands import cmd_start
from ecs_mgr.commands import cmd_start_all
from ecs_mgr.commands import cmd_stop
from ecs_mgr.commands import cmd_stop_all
from ecs_mgr.commands import dispatch
from ecs_mgr.commands import resolve_subcommand

_SVC = "arn:aws:ecs:us-east-1:111122223333:service/my-cluster/"
_TD = "arn:aws:ecs:us-east-1:111122223333:task-definition/"


def _g(execute: str = "list_services", service: str = "", debug: bool = False) -> MgrOpts:
    return MgrOpts(region="us-east-1", cluster="my-cluster", execute=execute, service=service, debug=debug)


class FakeEcsClient:
    def __init__(self, services=None, tasks=None, task_defs=None, fail_on=None):
        self.services = services or []
        self.tasks = tasks or {}
        self.task_defs = task_defs or {}
        self.fail_on = fail_on
        self.updates = []
        self.describes = []

    def list_service_arns(self, cluster):
        assert cluster == "my-cluster"
        return [_SVC + s for s in self.services]

    def list_task_arns(self, cluster, service):
        return list(self.tasks.get(service, []))

    def describe_task_definitions(self, cluster, services):
        self.describes.append(list(services))
        return {s: _TD + self.task_defs[s] for s in services if s in self.task_defs}

    def set_desired_count(self, cluster, service, count):
        if service == self.fail_on:
            raise TransportError(f"ecs update-service failed: {service}")
        self.updates.append((cluster, service, count))
        return {"serviceName": service, "desiredCount": count, "runningCount": 0, "status": "ACTIVE"}


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeEcsClient()
    monkeypatch.setattr(
        "ecs_mgr.commands.build_ecs_context",
        lambda _g: EcsContext(client=client),
    )
    return client


def test_short_name_keeps_final_segment():
    assert short_name(_SVC + "web") == "web"
    assert short_name(_TD + "web:12") == "web:12"
    assert short_name("plain") == "plain"


def test_list_services_prints_sorted_short_names(fake_client, capsys):
    fake_client.services = ["svcB", "svcA", "api"]

    assert cmd_list_services(_g()) == 0

    assert capsys.readouterr().out.splitlines() == ["api", "svcA", "svcB"]


def test_list_services_debug_goes_to_stderr(fake_client, capsys):
    fake_client.services = ["svcA"]

    assert cmd_list_services(_g(debug=True)) == 0

    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["svcA"]
    assert "listing services for cluster: my-cluster" in captured.err


def test_list_tasks_prints_sorted_task_ids(fake_client, capsys):
    fake_client.tasks = {
        "web": [
            "arn:aws:ecs:us-east-1:111122223333:task/my-cluster/ffff",
            "arn:aws:ecs:us-east-1:111122223333:task/my-cluster/0a0a",
        ]
    }

    assert cmd_list_tasks(_g("list_tasks", service="web")) == 0

    assert capsys.readouterr().out.splitlines() == ["0a0a", "ffff"]


def test_list_task_arns_prints_service_task_definition(fake_client, capsys):
    fake_client.task_defs = {"web": "web:7"}

    assert cmd_list_task_arns(_g("list_task_arns", service="web")) == 0

    assert capsys.readouterr().out.splitlines() == ["web:7"]
    assert fake_client.describes == [["web"]]


def test_list_all_task_arns_describes_each_service_in_order(fake_client, capsys):
    fake_client.services = ["worker", "api"]
    fake_client.task_defs = {"api": "api:3", "worker": "worker:9"}

    assert cmd_list_all_task_arns(_g("list_all_task_arns", service="ignored")) == 0

    assert capsys.readouterr().out.splitlines() == ["api:3", "worker:9"]
    assert fake_client.describes == [["api"], ["worker"]]


def test_start_sets_desired_count_one(fake_client, capsys):
    assert cmd_start(_g("start", service="web")) == 0

    assert fake_client.updates == [("my-cluster", "web", 1)]
    out = json.loads(capsys.readouterr().out)
    assert out["serviceName"] == "web"
    assert out["desiredCount"] == 1


def test_stop_sets_desired_count_zero(fake_client, capsys):
    assert cmd_stop(_g("stop", service="web")) == 0

    assert fake_client.updates == [("my-cluster", "web", 0)]
    assert json.loads(capsys.readouterr().out)["desiredCount"] == 0


def test_start_all_updates_every_service(fake_client, capsys):
    fake_client.services = ["b", "a", "c"]

    assert cmd_start_all(_g("start_all")) == 0

    assert fake_client.updates == [
        ("my-cluster", "a", 1),
        ("my-cluster", "b", 1),
        ("my-cluster", "c", 1),
    ]
    assert capsys.readouterr().out == ""


def test_stop_all_updates_every_service(fake_client):
    fake_client.services = ["a", "b"]

    assert cmd_stop_all(_g("stop_all")) == 0

    assert [u[2] for u in fake_client.updates] == [0, 0]
    assert [u[1] for u in fake_client.updates] == ["a", "b"]


def test_stop_all_halts_on_first_failure(fake_client):
    fake_client.services = ["a", "b", "c"]
    fake_client.fail_on = "b"

    with pytest.raises(TransportError):
        cmd_stop_all(_g("stop_all"))

    assert fake_client.updates == [("my-cluster", "a", 0)]


def test_subcommand_table_service_requirements():
    scoped = {name for name, sub in SUBCOMMANDS.items() if sub.requires_service}
    assert scoped == {"list_tasks", "list_task_arns", "list_all_task_arns", "start", "stop"}
    assert set(SUBCOMMANDS) - scoped == {"list_services", "start_all", "stop_all"}


@pytest.mark.parametrize("name", ["list_tasks", "list_task_arns", "list_all_task_arns", "start", "stop"])
def test_service_scoped_subcommands_require_service(name):
    with pytest.raises(MissingServiceError, match="no service specified") as exc:
        resolve_subcommand(_g(name))
    assert exc.value.exit_code == 99


def test_unknown_subcommand_is_rejected():
    with pytest.raises(InvalidSubcommandError, match="invalid subcommand") as exc:
        resolve_subcommand(_g("restart"))
    assert exc.value.exit_code == 99


def test_dispatch_routes_to_handler(fake_client, capsys):
    fake_client.services = ["svcB", "svcA"]

    assert dispatch(_g("list_services")) == 0

    assert capsys.readouterr().out == "svcA\nsvcB\n"
