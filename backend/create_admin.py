"""
Bootstrap tool: create a security company (tenant) and its first admin.

Usage:
  python create_admin.py <company> <email> <password>

Example:
  python create_admin.py "Sentinel Security Ltd" admin@sentinel-security.co.uk aStrongPassword123
"""
import asyncio
import re
import sys

from sqlalchemy import select

from app.core.database import AsyncSessionLocal, create_tables
from app.core.security import hash_password
from app.models.tenant import Tenant
from app.models.user import User, ROLE_ADMIN


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


async def main(company: str, email: str, password: str) -> None:
    if len(password) < 8:
        print("Error: password must be at least 8 characters long.")
        sys.exit(1)

    await create_tables()
    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            print(f"A user with e-mail '{email}' already exists.")
            sys.exit(0)

        slug = slugify(company)
        result = await db.execute(select(Tenant).where(Tenant.slug == slug))
        tenant = result.scalar_one_or_none()
        if tenant is None:
            tenant = Tenant(name=company, slug=slug)
            db.add(tenant)
            await db.flush()
            print(f"✓ Company '{company}' created (slug: {slug})")

        admin = User(
            tenant_id=tenant.id,
            email=email,
            full_name="Administrator",
            hashed_password=hash_password(password),
            role=ROLE_ADMIN,
        )
        db.add(admin)
        await db.commit()
        await db.refresh(admin)
        print(f"✓ Admin '{email}' created (ID: {admin.id})")


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print("Usage: python create_admin.py <company> <email> <password>")
        sys.exit(1)

    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3]))
