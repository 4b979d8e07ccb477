"""
Script to create a Super Admin
Run this to create the first admin account
"""

import asyncio
import getpass
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from membership.auth import generate_random_password
from membership.config import settings
from membership.database import build_store
from membership.errors import MembershipError
from membership.logging_config import configure_logging
from membership.services import Services

logger = logging.getLogger("create_super_admin")


async def create_super_admin(username: str, email: str, full_name: str, password: str = None):
    """
    Create a super admin account

    Args:
        username: Login username (3-20 characters)
        email: Admin email
        full_name: Admin full name
        password: Password (if None, will generate random)
    """
    store = build_store(settings)
    services = Services(store, settings)
    await store.connect()

    generated = password is None
    if generated:
        password = generate_random_password(12)

    try:
        admin = await services.admins.create_super_admin(username, email, password, full_name)
    except MembershipError as e:
        print(f"❌ {e.message}")
        return
    finally:
        await store.disconnect()

    print("✅ Super Admin created successfully!")
    print(f"   Username: {admin.username}")
    print(f"   Email: {admin.email}")
    print(f"   Name: {admin.full_name}")
    if generated:
        print(f"   Password: {password}")
        print("   ⚠️  IMPORTANT: Save this password and change it after the first login.")
    else:
        print("   Password: (custom password set)")


async def main():
    """Main function"""
    configure_logging(settings.LOG_LEVEL)
    print("\n" + "=" * 60)
    print("CREATE SUPER ADMIN")
    print("=" * 60 + "\n")

    username = input("Enter username: ").strip()
    email = input("Enter email: ").strip()
    full_name = input("Enter full name: ").strip()

    if not 3 <= len(username) <= 20:
        print("❌ Username must be 3-20 characters!")
        return

    use_custom = input("Set custom password? (y/n): ").strip().lower()
    if use_custom == "y":
        password = getpass.getpass("Enter password: ").strip()
        confirm = getpass.getpass("Confirm password: ").strip()

        if password != confirm:
            print("❌ Passwords do not match!")
            return
        if len(password) < 8:
            print("❌ Password must be at least 8 characters!")
            return
    else:
        password = None

    print("\n")
    await create_super_admin(username, email, full_name, password)
    print("\n")


if __name__ == "__main__":
    asyncio.run(main())
