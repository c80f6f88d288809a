"""Create the classbot tables and seed classroom orgs, assignments and staff.

Reads a YAML file (default ``classroom.yml`` in the project root)::

    orgs:
      - login: cs101-fall
        description: CS 101, Fall term
        assignments:
          - name: hw1
            due: 2026-10-01T23:59:00Z
    staff:
      - login: prof-x
        role: admin
        name: Professor X

GitHub ids are looked up through the API.  Existing rows are left alone.
"""

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent.parent
load_dotenv(ROOT / ".env")

import yaml
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from classbot.core.database import Base
from classbot.core.github_client import GitHubClient
from classbot.dao.assignment_dao import AssignmentDAO, ClassroomOrgDAO
from classbot.dao.user_dao import UserDAO
from classbot.models import UserRole


async def main(path: Path) -> None:
    url = os.environ.get("CLASSBOT_DATABASE_URL", "postgresql+asyncpg://localhost/classbot")
    engine = create_async_engine(url, pool_pre_ping=True)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    client = GitHubClient()

    with open(path) as f:
        seed = yaml.safe_load(f) or {}

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    org_dao = ClassroomOrgDAO()
    assignment_dao = AssignmentDAO()
    user_dao = UserDAO()
    created = {"orgs": 0, "assignments": 0, "users": 0}

    async with factory() as session:
        for org in seed.get("orgs") or []:
            row = await org_dao.get_by_name(session, org["login"])
            if row is None:
                info = await client.get(f"/orgs/{org['login']}")
                row = await org_dao.create(
                    session,
                    id=info["id"],
                    name=org["login"],
                    description=org.get("description"),
                )
                created["orgs"] += 1
            for assignment in org.get("assignments") or []:
                if await assignment_dao.get_by_org_id(session, row.id, assignment["name"]):
                    continue
                await assignment_dao.create(
                    session, org_id=row.id, name=assignment["name"], due=assignment.get("due")
                )
                created["assignments"] += 1

        for member in seed.get("staff") or []:
            if await user_dao.get_by_username(session, member["login"]):
                continue
            info = await client.get(f"/users/{member['login']}")
            await user_dao.create(
                session,
                id=info["id"],
                username=member["login"],
                role=UserRole(member.get("role", UserRole.MEMBER.value)).value,
                name=member.get("name") or info.get("name"),
            )
            created["users"] += 1
        await session.commit()

    print(
        f"Done: {created['orgs']} orgs, {created['assignments']} assignments, "
        f"{created['users']} staff users created."
    )

    await client.close()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main(Path(sys.argv[1]) if len(sys.argv) > 1 else ROOT / "classroom.yml"))
