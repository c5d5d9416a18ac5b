# scripts/generate_admin_hash.py
"""
Print a password hash for seeding the admin_users table.

usage: python scripts/generate_admin_hash.py [password]
Prompts for the password when it is not given.
"""
import getpass
import sys

from portal.core.security import hash_password


def main():
    password = sys.argv[1] if len(sys.argv) > 1 else getpass.getpass("Admin password: ")
    if not password:
        print("Password must not be empty", file=sys.stderr)
        sys.exit(1)
    print(hash_password(password))
    print("\nUse this hash as password_hash when inserting into admin_users.")


if __name__ == "__main__":
    main()
