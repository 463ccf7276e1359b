import argparse
import pandas as pd
import sys
import os
from sqlmodel import Session, select

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from models import Branch
from core.database import engine, create_db_and_tables

REQUIRED_COLUMNS = ["Company Name", "Region", "City", "Manager Email"]
OPTIONAL_COLUMNS = {
    "Country": "country",
    "Street": "street",
    "Email": "email",
    "Phone": "phone",
    "Website": "website",
}

def _clean(value):
    if pd.isna(value):
        return None
    value = str(value).strip()
    return value or None

def seed_branches(file_path: str, session: Session) -> dict:
    """
    Upserts branches from an Excel sheet. A row matches an existing branch
    on (name, manager); matched rows update location and contact fields.
    """
    # Read every cell as text so phone numbers keep their leading zeros
    df = pd.read_excel(file_path, dtype=str)
    df.columns = [str(c).strip() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        return {"success": False, "error": f"Missing required columns: {missing}"}

    created = 0
    updated = 0
    skipped = 0
    for index, row in df.iterrows():
        name = _clean(row["Company Name"])
        manager = _clean(row["Manager Email"])
        region = _clean(row["Region"])
        city = _clean(row["City"])
        if not (name and manager and region and city):
            print(f"Skipping row {index}: missing required value")
            skipped += 1
            continue

        extra = {field: _clean(row[col]) for col, field in OPTIONAL_COLUMNS.items() if col in df.columns}

        branch = session.exec(
            select(Branch).where(Branch.name == name, Branch.manager == manager)
        ).first()
        if not branch:
            branch = Branch(name=name, manager=manager, region=region, city=city, **extra)
            created += 1
        else:
            branch.region = region
            branch.city = city
            for field, value in extra.items():
                setattr(branch, field, value)
            updated += 1
        session.add(branch)

    session.commit()
    return {
        "success": True,
        "message": f"Created {created}, updated {updated}, skipped {skipped} branches.",
        "created": created,
        "updated": updated,
        "skipped": skipped,
    }

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed branches from an Excel sheet")
    parser.add_argument("file", help="Path to the .xlsx file")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"File not found: {args.file}")
        sys.exit(1)

    create_db_and_tables()
    with Session(engine) as session:
        result = seed_branches(args.file, session)

    if result["success"]:
        print(result["message"])
    else:
        print(f"Error seeding branches: {result['error']}")
        sys.exit(1)
