"""Database seeder: users (one admin), posts and nested comment threads."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from postapi.database import engine, async_session, Base
from postapi.models import Comment, Post, ROLE_ADMIN, ROLE_USER, User
from postapi.security import hash_password

TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "testing",
          "security", "performance", "typescript", "devops"]

DEFAULT_PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 10 if small else 50
    num_posts = 100 if small else 5000
    max_roots_per_post = 2 if small else 5
    max_depth = 3

    print(f"Seeding: {num_users} users, {num_posts} posts, up to {max_roots_per_post} threads per post")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # Hashing is deliberately slow; every seeded account shares one hash.
    password_hash = hash_password(DEFAULT_PASSWORD)

    async with async_session() as session:
        users = [
            User(
                username="admin",
                email="admin@example.com",
                password_hash=password_hash,
                role=ROLE_ADMIN,
                first_name="Site",
                last_name="Admin",
            )
        ]
        for i in range(num_users):
            users.append(User(
                username=f"user_{i:04d}",
                email=f"user_{i:04d}@example.com",
                password_hash=password_hash,
                role=ROLE_USER,
                first_name=f"User{i}",
                bio=f"I am test user number {i}. I write about {random.choice(TOPICS)}.",
            ))
        session.add_all(users)
        await session.flush()
        print(f"  Created {len(users)} users (login: admin / {DEFAULT_PASSWORD})")

        total_comments = 0
        for i in range(num_posts):
            created = datetime.now(timezone.utc) - timedelta(minutes=random.randint(0, 60 * 24 * 365))
            post = Post(
                user_id=random.choice(users).id,
                content=f"Post {i}: notes on {random.choice(TOPICS)}. " * 5,
                created_at=created,
            )
            session.add(post)
            await session.flush()

            # Each thread is a chain of replies up to max_depth deep.
            for _ in range(random.randint(0, max_roots_per_post)):
                parent_id = None
                for depth in range(random.randint(1, max_depth)):
                    comment = Comment(
                        user_id=random.choice(users).id,
                        post_id=post.id,
                        parent_comment_id=parent_id,
                        content=f"Reply at depth {depth} on post {i}.",
                        created_at=created + timedelta(minutes=depth + 1),
                    )
                    session.add(comment)
                    await session.flush()
                    parent_id = comment.id
                    total_comments += 1

            if (i + 1) % 500 == 0:
                print(f"  {i + 1} posts created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {len(users)}")
    print(f"  Posts: {num_posts}")
    print(f"  Comments: {total_comments}")


def main():
    parser = argparse.ArgumentParser(description="Seed the PostAPI database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
