import pandas as pd
from sqlmodel import select

from models import Branch
from scripts.seed_branches import seed_branches


def _write_sheet(path, rows):
    pd.DataFrame(rows).to_excel(path, index=False, engine="openpyxl")
    return path


def test_seed_branches_creates_and_updates(session, tmp_path):
    sheet = _write_sheet(tmp_path / "branches.xlsx", {
        "Company Name": ["Anfa", "Agdal", None],
        "Region": ["Casablanca-Settat", "Rabat-Sale-Kenitra", "Rabat-Sale-Kenitra"],
        "City": ["Casablanca", "Rabat", "Rabat"],
        "Manager Email": ["m@x.com", "r@x.com", "r@x.com"],
        "Phone": ["0522000000", None, None],
    })

    result = seed_branches(str(sheet), session)

    assert result["success"]
    assert (result["created"], result["updated"], result["skipped"]) == (2, 0, 1)
    anfa = session.exec(select(Branch).where(Branch.name == "Anfa")).one()
    assert anfa.phone == "0522000000"

    # Re-importing matches on (name, manager) instead of duplicating
    sheet = _write_sheet(tmp_path / "branches2.xlsx", {
        "Company Name": ["Anfa"],
        "Region": ["Casablanca-Settat"],
        "City": ["Mohammedia"],
        "Manager Email": ["m@x.com"],
    })
    result = seed_branches(str(sheet), session)

    assert (result["created"], result["updated"]) == (0, 1)
    branches = session.exec(select(Branch).where(Branch.name == "Anfa")).all()
    assert len(branches) == 1
    assert branches[0].city == "Mohammedia"


def test_seed_branches_missing_columns(session, tmp_path):
    sheet = _write_sheet(tmp_path / "bad.xlsx", {"Company Name": ["Anfa"]})

    result = seed_branches(str(sheet), session)

    assert not result["success"]
    assert "Region" in result["error"]


def test_seed_branches_keeps_numbers_as_text(session, tmp_path):
    sheet = _write_sheet(tmp_path / "numbers.xlsx", {
        "Company Name": ["Anfa"],
        "Region": ["Casablanca-Settat"],
        "City": ["Casablanca"],
        "Manager Email": ["m@x.com"],
        "Phone": ["0522000000"],
        "Street": ["12"],
    })

    seed_branches(str(sheet), session)

    anfa = session.exec(select(Branch).where(Branch.name == "Anfa")).one()
    assert anfa.phone == "0522000000"
    assert anfa.street == "12"
