"""Apply an administrative status change (suspend, remove) to an account."""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from meco_auth.database import SessionLocal
from meco_auth.exceptions import IllegalTransition, NotFound, ValidationError
from meco_auth.models.user import AccountStatus
from meco_auth.services.auth import get_auth_flows


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Change the status of a Mini-Meco account")
    parser.add_argument("email", help="Email address of the account")
    parser.add_argument(
        "status",
        choices=[s.value for s in AccountStatus if s is not AccountStatus.UNCONFIRMED],
        help="New account status",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    flows = get_auth_flows()

    db = SessionLocal()
    try:
        user = flows.change_status(db, args.email, AccountStatus(args.status))
    except (NotFound, ValidationError) as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except IllegalTransition as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"User #{user.id} <{user.email}> is now {user.status.value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
