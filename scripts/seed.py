"""Bootstrap the blog database: a super admin account plus optional demo content."""
import argparse
import asyncio
import random
import time

from sqlalchemy import select

from blogapi.database import Base, async_session, engine
from blogapi.models import PostStatus, User, UserRole
from blogapi.schemas import BlogPostCreate, CategoryCreate, TagCreate, UserCreate
from blogapi.services import category_service, post_service, tag_service, user_service

CATEGORIES = ["Engineering", "Product", "Culture", "Tutorials", "Announcements"]
TAGS = ["python", "fastapi", "postgresql", "docker", "testing", "performance",
        "security", "devops", "release-notes", "how-to"]


def slug_of(name: str) -> str:
    return name.lower().replace(" ", "-")


async def seed(admin_email: str, admin_username: str, admin_password: str,
               demo: bool = False, reset: bool = False) -> None:
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        existing = await session.execute(select(User).where(User.email == admin_email))
        admin = existing.scalar_one_or_none()
        if admin is None:
            created = await user_service.create_user(session, UserCreate(
                email=admin_email,
                username=admin_username,
                password=admin_password,
                first_name="Site",
                last_name="Admin",
                role=UserRole.SUPER_ADMIN,
            ))
            admin_id = created.id
            print(f"  Created super admin {admin_email} (id={admin_id})")
        else:
            admin_id = admin.id
            print(f"  Super admin {admin_email} already exists (id={admin_id})")

        if demo:
            categories = [
                await category_service.create_category(
                    session, CategoryCreate(name=name, slug=slug_of(name))
                )
                for name in CATEGORIES
            ]
            tags = [
                await tag_service.create_tag(session, TagCreate(name=name, slug=slug_of(name)))
                for name in TAGS
            ]
            print(f"  Created {len(categories)} categories, {len(tags)} tags")

            for i in range(20):
                topic = random.choice(TAGS)
                await post_service.create_post(session, BlogPostCreate(
                    title=f"Post {i}: notes on {topic}",
                    slug=f"post-{i}-notes-on-{slug_of(topic)}",
                    content=f"This is the full content of post {i} about {topic}. " * 20,
                    excerpt=f"A short introduction to {topic}.",
                    status=PostStatus.PUBLISHED if random.random() > 0.2 else PostStatus.DRAFT,
                    category_ids=[c.id for c in random.sample(categories, k=random.randint(1, 2))],
                    tag_ids=[t.id for t in random.sample(tags, k=random.randint(0, 3))],
                ), admin_id)
            print("  Created 20 demo posts")

        await session.commit()

    await engine.dispose()
    print(f"\nSeeding complete in {time.perf_counter() - start:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--admin-email", default="admin@example.com")
    parser.add_argument("--admin-username", default="admin")
    parser.add_argument("--admin-password", required=True)
    parser.add_argument("--demo", action="store_true", help="Also create demo categories, tags and posts")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    args = parser.parse_args()
    asyncio.run(seed(
        args.admin_email,
        args.admin_username,
        args.admin_password,
        demo=args.demo,
        reset=args.reset,
    ))


if __name__ == "__main__":
    main()
