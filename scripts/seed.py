"""Database seeder for local development of the admin panel."""
import asyncio
import argparse
import random
import time

from cms_admin.database import engine, async_session, Base
from cms_admin.models import User, Tag
from cms_admin.policies import Actor
from cms_admin.services import article_service, category_service
from cms_admin.validation import check_article, check_category

TAGS = ["python", "fastapi", "postgresql", "docker", "securite", "performance",
        "tutoriel", "actualite", "evenement", "communaute"]

CATEGORIES = [
    ("Actualités", "actualites"),
    ("Tutoriels", "tutoriels"),
    ("Événements", "evenements"),
    ("Annonces", "annonces"),
]


async def seed(num_users: int, num_articles: int):
    print(f"Seeding: {num_users} users, {len(CATEGORIES)} categories, {num_articles} articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        tags = [Tag(name=name) for name in TAGS]
        session.add_all(tags)

        # The first user is the admin; the others only manage their own articles.
        users = [
            User(
                username=f"user_{i:03d}",
                email=f"user_{i:03d}@example.com",
                is_admin=(i == 0),
            )
            for i in range(num_users)
        ]
        session.add_all(users)
        await session.flush()
        print(f"  Created {len(tags)} tags and {len(users)} users")

        categories = []
        for title, slug in CATEGORIES:
            data = check_category({"title": title, "slug": slug})
            categories.append(await category_service.store(session, data))

        category_ids = {c.id for c in categories}
        tag_ids = {t.id for t in tags}
        for i in range(num_articles):
            owner = random.choice(users)
            data = check_article(
                {
                    "title": f"Article {i}",
                    "content": f"Contenu de l'article {i}. " * 10,
                    "category": random.choice(sorted(category_ids)),
                    "tags": random.sample(sorted(tag_ids), k=random.randint(0, 3)),
                },
                category_ids,
                tag_ids,
            )
            await article_service.store(session, Actor(id=owner.id, is_admin=owner.is_admin), data)

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the admin database")
    parser.add_argument("--users", type=int, default=3, help="Number of users (first one is admin)")
    parser.add_argument("--articles", type=int, default=20, help="Number of articles")
    args = parser.parse_args()
    asyncio.run(seed(args.users, args.articles))


if __name__ == "__main__":
    main()
