#!/usr/bin/env python3
"""
Work the moderation queue from a terminal: sign in as a moderator, list pending spots,
approve / reject / delete by id. Uses whichever BACKEND_MODE .env selects.

Usage: cd backend && poetry run python scripts/moderate.py --email you@example.com pending
       cd backend && poetry run python scripts/moderate.py --email you@example.com approve <spot_id>
Password is read from MODERATOR_PASSWORD or prompted for.
"""
import argparse
import getpass
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from parkaccess.config import settings
from parkaccess.core.errors import ParkAccessError
from parkaccess.services.backend import create_backend_client
from parkaccess.services.listings import ListingService


def main():
    parser = argparse.ArgumentParser(description="Moderate submitted parking spots")
    parser.add_argument("--email", required=True, help="Moderator account email")
    parser.add_argument("command", choices=["pending", "public", "approve", "reject", "delete"])
    parser.add_argument("spot_id", nargs="?", help="Spot id for approve/reject/delete")
    args = parser.parse_args()

    if args.command in ("approve", "reject", "delete") and not args.spot_id:
        parser.error(f"{args.command} needs a spot_id")

    password = os.getenv("MODERATOR_PASSWORD") or getpass.getpass("Password: ")
    client = create_backend_client(settings)
    result = client.sign_in(args.email, password)
    if result.error is not None:
        print(f"Sign in failed: {result.error}")
        return 1

    service = ListingService(client)
    try:
        if not service.is_moderator():
            print("This account is not a moderator.")
            return 1
        if args.command in ("pending", "public"):
            spots = service.fetch_pending_listings() if args.command == "pending" else service.fetch_public_listings()
            print(f"{len(spots)} {args.command} spots")
            for s in spots:
                print(f"  {s.id}  {s.created_at or '-':<32}  {s.city:<24}  {s.surface_type.value:<11}  ({s.latitude:.5f}, {s.longitude:.5f})")
        elif args.command == "approve":
            spot = service.approve_listing(args.spot_id)
            print(f"Approved {spot.id} at {spot.approved_at}")
        elif args.command == "reject":
            spot = service.reject_listing(args.spot_id)
            print(f"Rejected {spot.id}")
        else:
            service.delete_listing(args.spot_id)
            print(f"Deleted {args.spot_id}")
    except ParkAccessError as e:
        print(f"Failed: {e}")
        return 1
    finally:
        client.sign_out()
    return 0


if __name__ == "__main__":
    sys.exit(main())
