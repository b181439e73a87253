#!/usr/bin/env python3
"""
Development Data Seeder
=======================
Creates 10 users, 5 group chats containing all of them, and 20 messages per
chat with rotating senders.

Usage:
    python scripts/seed_data.py

Outputs:
    scripts/data/users.json   (id, username, email of every seeded user)
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.database import AsyncSessionLocal, engine
from app.core.security import hash_password
from app.models import Base
from app.repositories.chat_repo import ChatRepository
from app.repositories.user_repo import UserRepository
from app.services.message_service import MessageService

logger = logging.getLogger("seed_data")

DATA_DIR = Path(__file__).parent / "data"

N_USERS = 10
N_CHATS = 5
N_MESSAGES_PER_CHAT = 20
DEFAULT_PASSWORD = "password123"


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        user_repo = UserRepository(db)
        password_hash = hash_password(DEFAULT_PASSWORD)

        users = []
        for i in range(1, N_USERS + 1):
            user = await user_repo.get_by_username(f"user{i}")
            if user is None:
                user = await user_repo.create(
                    username=f"user{i}",
                    email=f"user{i}@example.com",
                    phone=f"5550000{i:03d}",
                    password_hash=password_hash
                )
            users.append(user)
        await db.commit()
        logger.info(f"{len(users)} users ready")

        chat_repo = ChatRepository(db)
        message_service = MessageService(db)
        user_ids = [u.id for u in users]

        for i in range(1, N_CHATS + 1):
            chat = await chat_repo.create_with_participants(
                creator_id=user_ids[0],
                participant_ids=user_ids,
                name=f"Chat {i}",
                is_group=True
            )
            await db.commit()

            for j in range(1, N_MESSAGES_PER_CHAT + 1):
                await message_service.send_message(
                    chat.id,
                    user_ids[j % len(user_ids)],
                    f"Message {j} in {chat.name}"
                )
            logger.info(f"Seeded {chat.name} ({chat.id})")

    DATA_DIR.mkdir(exist_ok=True)
    output = DATA_DIR / "users.json"
    output.write_text(json.dumps(
        [{"id": u.id, "username": u.username, "email": u.email} for u in users],
        indent=2
    ))
    logger.info(f"Wrote {output}")

    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(seed())
