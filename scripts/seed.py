"""Database seeder for local development of the diary service."""
import asyncio
import argparse
import random
import time
from app.database import engine, async_session, Base
from app.models import Diary, DiaryLike

TOPICS = ["walk", "park", "rainy day", "vet visit", "new toy", "beach",
          "birthday", "training", "nap", "snow", "picnic", "grooming"]

async def seed(small: bool = False):
    num_users = 10 if small else 50
    num_diaries = 100 if small else 5000
    max_likes_per_diary = 5 if small else 20

    print(f"Seeding: {num_diaries} diaries from {num_users} users")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    user_ids = list(range(1, num_users + 1))
    total_likes = 0

    async with async_session() as session:
        batch_size = 500
        for batch_start in range(0, num_diaries, batch_size):
            batch_end = min(batch_start + batch_size, num_diaries)
            diaries = []
            for i in range(batch_start, batch_end):
                topic = random.choice(TOPICS)
                diary = Diary(
                    user_id=random.choice(user_ids),
                    title=f"Diary {i}: {topic}",
                    content=f"Today was all about the {topic}. " * 10,
                    image_url=f"https://images.example.com/diary/{i}.jpg" if random.random() > 0.5 else None,
                    likes=0,
                )
                session.add(diary)
                diaries.append(diary)
            await session.flush()

            # Likes and counters stay consistent: one like per (diary, user).
            for diary in diaries:
                likers = random.sample(user_ids, k=random.randint(0, min(max_likes_per_diary, num_users)))
                for user_id in likers:
                    session.add(DiaryLike(diary_id=diary.diary_id, user_id=user_id))
                diary.likes = len(likers)
                total_likes += len(likers)
            await session.flush()

            print(f"  Batch {batch_start}-{batch_end}: diaries created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Diaries: {num_diaries}")
    print(f"  Likes: {total_likes}")


def main():
    parser = argparse.ArgumentParser(description="Seed the diary database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 diaries)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
