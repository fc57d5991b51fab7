#!/usr/bin/env python3
"""Populate the local sqlite store with demo users and a week of chat messages."""
import random
import sys
from datetime import datetime, timedelta
from admin_dashboard.config import settings
from admin_dashboard.models import init_db
from admin_dashboard.storage import clear_all, insert_chat_message, insert_user_profile

PROMPTS = [
    ("How do I reset my password?", "Open Settings, choose Security and pick Reset password."),
    ("What are your opening hours?", "We are available around the clock."),
    ("Can you summarise my last order?", "Your last order shipped yesterday and arrives Friday."),
    ("Tell me a joke", "Why did the developer go broke? Because they used up all their cache."),
]

if len(sys.argv) > 2:
    print("Usage: python seed_demo_db.py [messages_per_day]")
    sys.exit(1)

per_day = int(sys.argv[1]) if len(sys.argv) == 2 else 12

init_db(settings.database_url)
clear_all(settings.database_url)

user_ids = [insert_user_profile(f"user{n}@example.com") for n in range(1, 9)]
# one profile that never sends a message
insert_user_profile("lurker@example.com")

now = datetime.now()
count = 0
for days_ago in range(10):
    day = now - timedelta(days=days_ago)
    for _ in range(random.randint(per_day // 2, per_day)):
        created_at = day.replace(hour=random.randint(0, 23), minute=random.randint(0, 59))
        if created_at > now:
            created_at = now
        message, response = random.choice(PROMPTS)
        # a deleted user leaves no resolvable profile
        user_id = random.choice(user_ids + ["deleted-user"])
        insert_chat_message(message, response, user_id=user_id, created_at=created_at)
        count += 1

print(f"Seeded {count} messages for {len(user_ids) + 1} users into {settings.database_url}")
