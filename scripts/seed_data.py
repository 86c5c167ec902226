#!/usr/bin/env python3
"""
Seed script: creates workshop roles and users via the API (no direct DB).
Ensures: the statistics endpoint has a realistic distribution to show.
Run: API must be running and migrated (alembic upgrade head seeds the base roles).
  python scripts/seed_data.py
  python scripts/seed_data.py --users 50 --base-url http://localhost:8000/api/v1
"""

import argparse
import random

import httpx

API_BASE = "http://localhost:8000/api/v1"

EXTRA_ROLES = ["Quality Assurance", "Product Owner", "Scrum Master", "Diseñador UX"]

FIRST_NAMES = ["Ana", "Luis", "María", "Carlos", "Sofía", "Jorge", "Lucía", "Diego", "Valentina", "Andrés"]
LAST_NAMES = ["García", "Rodríguez", "López", "Martínez", "Pérez", "Gómez", "Díaz", "Torres"]


def random_full_name() -> str:
    return f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}"


def main():
    ap = argparse.ArgumentParser(description="Seed roles and users via API")
    ap.add_argument("--users", type=int, default=30, help="Number of users to create")
    ap.add_argument("--base-url", default=API_BASE, help="API base URL")
    args = ap.parse_args()

    role_ids: list[int] = []
    created_users = 0
    errors: list[str] = []

    with httpx.Client(base_url=args.base_url, timeout=30.0) as client:
        # 1) Extra roles (409 means a previous run already created them)
        print(f"Creating {len(EXTRA_ROLES)} roles...")
        for name in EXTRA_ROLES:
            r = client.post("/roles/create", json={"name": name})
            if r.status_code not in (201, 409):
                errors.append(f"Role {name}: {r.status_code} {r.text[:80]}")

        r = client.get("/roles/getAll")
        r.raise_for_status()
        role_ids = [role["id"] for role in r.json()["data"]]

        # 2) Users spread across roles; some left on the default role
        print(f"Creating {args.users} users...")
        for i in range(args.users):
            payload = {
                "email": f"student{i + 1}@example.com",
                "password": "password123",
                "full_name": random_full_name(),
            }
            if role_ids and random.random() > 0.3:
                payload["role_id"] = random.choice(role_ids)
            try:
                r = client.post("/users/create", json=payload)
                if r.status_code == 201:
                    created_users += 1
                elif r.status_code != 409:
                    errors.append(f"User {payload['email']}: {r.status_code} {r.text[:80]}")
            except httpx.HTTPError as e:
                errors.append(f"User {payload['email']}: {e}")
            if (i + 1) % 10 == 0:
                print(f"  ... {i + 1} users")

        stats = client.get("/roles/getStatistics").json()["data"]

    print(f"\nDone. Users created: {created_users}")
    print(f"Most popular role: {stats['most_popular_role']} ({stats['total_users']} active users)")
    for share in stats["role_distribution"]:
        print(f"  {share['role_name']:<20} {share['user_count']:>4}  {share['percentage']:>6}%")
    if errors:
        print(f"Errors ({len(errors)}):")
        for e in errors[:15]:
            print("  ", e)
        if len(errors) > 15:
            print("  ... and", len(errors) - 15, "more")


if __name__ == "__main__":
    main()
