import sys
import os
import argparse
import getpass

# Adjust path to import from project root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlmodel import Session, select
from models import AdminUser
from core.database import engine, create_db_and_tables
from core.security import get_password_hash

def add_user(email, password, full_name, role):
    with Session(engine) as session:
        existing_user = session.exec(select(AdminUser).where(AdminUser.email == email)).first()
        if existing_user:
            print(f"Error: User '{email}' already exists.")
            return

        new_user = AdminUser(
            email=email,
            password_hash=get_password_hash(password),
            full_name=full_name,
            role=role,
            is_active=True
        )
        session.add(new_user)
        session.commit()
        print(f"Successfully created user: {email} ({role})")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Add a new admin user")
    parser.add_argument("--email", help="Email (used as the login and branch manager identity)")
    parser.add_argument("--password", help="Password")
    parser.add_argument("--fullname", help="Full Name", default="New User")
    parser.add_argument("--role", help="Role (manager/superuser)", default="manager")
    parser.add_argument("--interactive", action="store_true", help="Run in interactive mode")

    args = parser.parse_args()
    create_db_and_tables()

    if args.interactive:
        print("--- Add New User ---")
        email = input("Email: ")
        password = getpass.getpass("Password: ")
        full_name = input("Full Name: ")
        role = input("Role (manager/superuser) [manager]: ") or "manager"

        add_user(email, password, full_name, role)

    elif args.email and args.password:
        add_user(args.email, args.password, args.fullname, args.role)
    else:
        print("Error: Please provide --email and --password, or use --interactive")
        parser.print_help()
