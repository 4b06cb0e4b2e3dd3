"""
Grant or revoke the ``admin`` custom claim for an account.

Usage:
    python -m scripts.set_admin_claim someone@deakin.edu.au
    python -m scripts.set_admin_claim someone@deakin.edu.au --revoke

The user must sign out and back in (or force a token refresh) before the
new claim shows up in their ID token.
"""

import argparse
import asyncio
import sys

from firebase_admin import auth as firebase_auth

from devdeakin.services.firebase_service import firebase_service


async def set_admin(email: str, revoke: bool = False) -> None:
    firebase_service._ensure_initialized()

    try:
        user = await asyncio.to_thread(firebase_auth.get_user_by_email, email)
    except firebase_auth.UserNotFoundError:
        print(f"❌ No account with email {email}")
        sys.exit(1)

    claims = await firebase_service.get_custom_claims(user.uid)
    if revoke:
        claims.pop("admin", None)
    else:
        claims["admin"] = True

    await firebase_service.set_custom_claims(user.uid, claims)
    action = "revoked from" if revoke else "granted to"
    print(f"✅ admin {action} {email} ({user.uid})")
    print(f"Claims now: {claims}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("email")
    parser.add_argument("--revoke", action="store_true")
    args = parser.parse_args()

    asyncio.run(set_admin(args.email, revoke=args.revoke))
