from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Iterable

try:
    import boto3  # type: ignore
except Exception:  # pragma: no cover - exercised only when deps are missing
    boto3 = None

try:
    from dotenv import load_dotenv  # type: ignore
except Exception:  # pragma: no cover - exercised only when deps are missing
    load_dotenv = None


class EcsMgrError(Exception):
    exit_code = 1


class UsageError(EcsMgrError):
    pass


class MissingServiceError(UsageError):
    exit_code = 99


class InvalidSubcommandError(UsageError):
    exit_code = 99


class MissingDependencyError(EcsMgrError):
    pass


class TransportError(EcsMgrError):
    pass


ECS_MGR_REGION = "ECS_MGR_REGION"
ECS_MGR_CLUSTER = "ECS_MGR_CLUSTER"

DEFAULT_REGION = "us-east-1"
VALID_REGIONS = ("us-east-1", "sa-east-1", "us-west-2")


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


@dataclass(frozen=True)
class MgrOpts:
    region: str
    cluster: str
    execute: str
    service: str = ""
    debug: bool = False
    profile: str = ""


def _debug(g: MgrOpts, msg: str) -> None:
    if g.debug:
        _eprint(msg)


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _require_str(val: str | None, name: str, *, hint: str) -> str:
    v = (val or "").strip()
    if not v:
        raise UsageError(f"missing {name} ({hint})")
    return v


def _require_boto3() -> Any:
    if boto3 is None:
        raise MissingDependencyError(
            "missing dependency: boto3 (install the package with pip install -e .)"
        )
    return boto3


def _check_dependencies() -> None:
    _require_boto3()
    if load_dotenv is None:
        raise MissingDependencyError(
            "missing dependency: python-dotenv (install the package with pip install -e .)"
        )


def _bootstrap_env() -> None:
    _check_dependencies()
    # Exported process environment wins over .env values.
    load_dotenv()


def _normalize_region(region: str | None) -> str:
    v = (region or "").strip()
    if v not in VALID_REGIONS:
        return DEFAULT_REGION
    return v


def _session(g: MgrOpts) -> Any:
    _require_boto3()
    from botocore.exceptions import BotoCoreError

    try:
        return boto3.session.Session(profile_name=g.profile or None, region_name=g.region)
    except BotoCoreError as e:
        raise UsageError(f"aws session setup failed (profile={g.profile or 'default'}): {e}") from e


def short_name(arn: str) -> str:
    return (arn or "").strip().rsplit("/", 1)[-1]


def _print_lines(lines: Iterable[str]) -> None:
    for line in lines:
        sys.stdout.write(line + "\n")


def _print_json(obj: Any) -> None:
    sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True, default=str) + "\n")
