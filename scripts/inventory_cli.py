#!/usr/bin/env python3
"""
Operator CLI for the blood bank inventory.

Creates the schema, registers donors, records donations, dispatches and
disposes units, and prints the inventory overview as JSON.  Every command
runs as one unit of work against the database named in the configuration
(``bloodbank_config``), acting under ``--role``.

Usage:
  python3 scripts/inventory_cli.py init
  python3 scripts/inventory_cli.py add-donor --name "Ana Diaz" --age 34 --weight 61.5 --blood-type O-
  python3 scripts/inventory_cli.py donate --donor-id <uuid> --volume 450 --expiry 2024-07-20
  python3 scripts/inventory_cli.py dispatch O-
  python3 scripts/inventory_cli.py dispose <donation-uuid> O-
  python3 scripts/inventory_cli.py report

Exit codes:
  0 success, 2 rejected by the kernel (validation, authorization, stock),
  3 store failure.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bloodbank_config import get_active_config  # noqa: E402
from bloodbank_kernel.db.engine import (  # noqa: E402
    create_engine_from_url,
    create_session_factory,
    create_tables,
)
from bloodbank_kernel.domain.clock import SystemClock  # noqa: E402
from bloodbank_kernel.domain.roles import Actor, ActorRole, Operation, require_authorized  # noqa: E402
from bloodbank_kernel.exceptions import BloodBankError, PersistenceError  # noqa: E402
from bloodbank_kernel.logging_config import configure_logging, get_logger  # noqa: E402
from bloodbank_kernel.selectors.alert_selector import AlertSelector  # noqa: E402
from bloodbank_kernel.services.donor_service import DonorService  # noqa: E402
from bloodbank_kernel.services.inventory_service import InventoryService  # noqa: E402

logger = get_logger("cli")

EXIT_OK = 0
EXIT_REJECTED = 2
EXIT_STORE_FAILURE = 3


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


def to_json(result: Any) -> str:
    payload = asdict(result) if is_dataclass(result) else result
    if hasattr(result, "total_units"):
        payload["total_units"] = result.total_units
    return json.dumps(payload, default=_json_default, indent=2)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Blood bank inventory operations")
    p.add_argument("--config", default=None, help="YAML config file (default: packaged defaults.yaml)")
    p.add_argument("--db-url", default=None, help="Database URL (overrides config and environment)")
    p.add_argument(
        "--role",
        default=ActorRole.ADMIN.value,
        help="Role to act under: admin, medical-staff or regular-staff (default: admin)",
    )
    p.add_argument("--actor-id", type=UUID, default=None, help="Acting user id (default: random)")

    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create tables and seed the 8 stock rows")

    add = sub.add_parser("add-donor", help="Register a donor")
    add.add_argument("--name", required=True)
    add.add_argument("--age", type=int, required=True)
    add.add_argument("--weight", required=True, help="Weight in kg, e.g. 72.5")
    add.add_argument("--blood-type", required=True)
    add.add_argument("--phone", default=None)

    donate = sub.add_parser("donate", help="Record a donation")
    donate.add_argument("--donor-id", required=True)
    donate.add_argument("--volume", type=int, required=True, help="Volume in ml")
    donate.add_argument("--expiry", required=True, help="Expiry date YYYY-MM-DD")
    donate.add_argument("--collection-date", default=None, help="Collection date YYYY-MM-DD")
    donate.add_argument("--blood-type", default=None, help="Expected type (donor's type wins)")

    dispatch = sub.add_parser("dispatch", help="Dispatch one unit")
    dispatch.add_argument("blood_type")

    dispose = sub.add_parser("dispose", help="Dispose of a donation record")
    dispose.add_argument("donation_id")
    dispose.add_argument("blood_type")

    sub.add_parser("report", help="Print stock levels and alerts as JSON")
    return p


def run(args: argparse.Namespace, out=None) -> int:
    out = out or sys.stdout
    environ = None
    if args.db_url:
        environ = {"BLOODBANK_DATABASE_URL": args.db_url}
    config = get_active_config(args.config, environ=environ)
    configure_logging(level=config.logging.level_number)

    engine = create_engine_from_url(config.database.url, **config.database.engine_kwargs())
    try:
        if args.command == "init":
            create_tables(engine)
            print(json.dumps({"initialized": True, "database": engine.url.render_as_string()}), file=out)
            return EXIT_OK

        actor = Actor.from_gate(args.actor_id or uuid4(), args.role)
        clock = SystemClock()
        factory = create_session_factory(engine)
        with factory() as session:
            result = _dispatch_command(args, session, actor, clock, config.inventory_policy())
        print(to_json(result), file=out)
        return EXIT_OK
    finally:
        engine.dispose()


def _dispatch_command(args, session, actor, clock, policy):
    if args.command == "add-donor":
        return DonorService(session, clock=clock).register_donor(
            actor,
            full_name=args.name,
            age=args.age,
            weight_kg=args.weight,
            blood_type=args.blood_type,
            phone=args.phone,
        )

    inventory = InventoryService(session, clock=clock, policy=policy)
    if args.command == "donate":
        return inventory.record_donation(
            actor,
            donor_id=args.donor_id,
            volume_ml=args.volume,
            expiry_date=args.expiry,
            blood_type=args.blood_type,
            collection_date=args.collection_date,
        )
    if args.command == "dispatch":
        return inventory.dispatch_unit(actor, args.blood_type)
    if args.command == "dispose":
        return inventory.dispose_expired(actor, args.donation_id, args.blood_type)
    if args.command == "report":
        require_authorized(actor, Operation.VIEW_INVENTORY)
        return AlertSelector(session, clock=clock, policy=policy).inventory_overview()
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None, out=None, err=None) -> int:
    args = build_parser().parse_args(argv)
    err = err or sys.stderr
    try:
        return run(args, out=out)
    except PersistenceError as exc:
        logger.error("cli_store_failure", exc_info=True)
        print(json.dumps({"error": exc.code, "message": str(exc)}), file=err)
        return EXIT_STORE_FAILURE
    except BloodBankError as exc:
        print(json.dumps({"error": exc.code, "message": str(exc)}), file=err)
        return EXIT_REJECTED


if __name__ == "__main__":
    sys.exit(main())
