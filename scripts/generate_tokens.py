#!/usr/bin/env python3
"""
Bearer Token Generator
======================
Reads scripts/data/users.json (written by seed_data.py) and issues a token
for every seeded user, signed with the server's JWT_SECRET.

Usage:
    python scripts/generate_tokens.py [--hours 24]

Output:
    scripts/data/tokens.json   ({username: token})
"""

import argparse
import json
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.security import create_access_token

DATA_DIR = Path(__file__).parent / "data"


def main() -> int:
    parser = argparse.ArgumentParser(description="Issue bearer tokens for seeded users")
    parser.add_argument("--hours", type=int, default=24, help="Token lifetime in hours")
    args = parser.parse_args()

    users_file = DATA_DIR / "users.json"
    if not users_file.exists():
        print(f"{users_file} not found, run scripts/seed_data.py first", file=sys.stderr)
        return 1

    users = json.loads(users_file.read_text())
    tokens = {
        user["username"]: create_access_token(
            {"sub": user["id"], "email": user["email"]},
            expires_delta=timedelta(hours=args.hours)
        )
        for user in users
    }

    output = DATA_DIR / "tokens.json"
    output.write_text(json.dumps(tokens, indent=2))
    print(f"Wrote {len(tokens)} tokens to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
