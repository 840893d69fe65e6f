from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Allow running this file directly: `python safeprep/scripts/grant_admin.py`
if __package__ in (None, ""):
    repo_root = Path(__file__).resolve().parents[2]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.db.session import SessionLocal, engine
from safeprep.models import AdminUser, Profile

ADMIN_LEVELS = ("admin", "super_admin")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Add an existing account to the administrator registry.")
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--level", default="admin", choices=ADMIN_LEVELS, help="Administrator level")
    parser.add_argument("--revoke", action="store_true", help="Remove the account from the registry instead")
    return parser.parse_args(argv)


async def grant_admin(db: AsyncSession, email: str, level: str = "admin", revoke: bool = False) -> dict:
    user = (await db.execute(select(Profile).where(Profile.email == email))).scalars().first()
    if not user:
        return {"ok": False, "error": f"user not found: {email}"}

    row = (await db.execute(select(AdminUser).where(AdminUser.user_id == user.id))).scalars().first()
    if revoke:
        if row:
            await db.delete(row)
            await db.commit()
        return {"ok": True, "email": email, "admin": False}

    created = row is None
    if created:
        row = AdminUser(user_id=user.id, admin_level=level, permissions={})
        db.add(row)
    else:
        row.admin_level = level
    await db.commit()
    return {"ok": True, "email": email, "admin": True, "admin_level": level, "created": created}


async def _run(args: argparse.Namespace) -> int:
    email = args.email.strip().lower()
    try:
        async with SessionLocal() as db:
            result = await grant_admin(db, email, level=args.level, revoke=args.revoke)
    finally:
        await engine.dispose()

    if not result["ok"]:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 3
    print(result)
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
