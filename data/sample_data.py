"""Demo dataset for the workstation allocation tracker."""

import os
from typing import Dict

import pandas as pd

from data.loader import ImportSummary, import_frames


def generate_floors_df() -> pd.DataFrame:
    """Two offices: HQ with three floors, Tech Park with two."""
    rows = []
    for office, floors in (("HQ Campus", ["5th Floor", "6th Floor", "9th Floor"]),
                           ("Tech Park", ["1st Floor", "2nd Floor"])):
        for floor in floors:
            rows.append({"Office": office, "Floor": floor})
    return pd.DataFrame(rows)


def generate_floor_ranges_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Office": "HQ Campus", "Floor": "5th Floor", "Asset ID Range": "1-150"},
        {"Office": "HQ Campus", "Floor": "9th Floor", "Asset ID Range": "1-200"},
        {"Office": "Tech Park", "Floor": "1st Floor", "Asset ID Range": "1-80, 101-120"},
    ])


def generate_labs_df() -> pd.DataFrame:
    """Lab allocations. Ranges on a lab row bound its division allocations."""
    return pd.DataFrame([
        {"Office": "HQ Campus", "Floor": "5th Floor", "Lab": "Lab A", "Total Workstations": 60, "Asset ID Range": "1-60"},
        {"Office": "HQ Campus", "Floor": "5th Floor", "Lab": "Lab B", "Total Workstations": 50, "Asset ID Range": "61-110"},
        {"Office": "HQ Campus", "Floor": "6th Floor", "Lab": "Training Room", "Total Workstations": 30, "Asset ID Range": None},
        {"Office": "HQ Campus", "Floor": "9th Floor", "Lab": "Lab A", "Total Workstations": 100, "Asset ID Range": "1-100"},
        {"Office": "HQ Campus", "Floor": "9th Floor", "Lab": "Lab C", "Total Workstations": 60, "Asset ID Range": "101-160"},
        {"Office": "Tech Park", "Floor": "1st Floor", "Lab": "Dev Bay", "Total Workstations": 80, "Asset ID Range": "1-80"},
        {"Office": "Tech Park", "Floor": "2nd Floor", "Lab": "QA Bay", "Total Workstations": 40, "Asset ID Range": "1-40"},
    ])


def generate_lab_ranges_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Office": "HQ Campus", "Floor": "5th Floor", "Lab": "Lab A", "Asset ID Range": "1-60"},
        {"Office": "HQ Campus", "Floor": "5th Floor", "Lab": "Lab B", "Asset ID Range": "61-110"},
        {"Office": "HQ Campus", "Floor": "9th Floor", "Lab": "Lab A", "Asset ID Range": "1-100"},
        {"Office": "Tech Park", "Floor": "1st Floor", "Lab": "Dev Bay", "Asset ID Range": "1-80"},
    ])


def generate_divisions_df() -> pd.DataFrame:
    names = ["Engineering", "Product", "Sales", "Finance", "HR", "Operations"]
    return pd.DataFrame({"Division": names})


def generate_employees_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Name": "Facilities Admin", "Email": "facilities@example.com", "Divisions": "", "Is Admin": "Yes"},
        {"Name": "Asha Rao", "Email": "asha.rao@example.com", "Divisions": "Engineering, Product", "Is Admin": "No"},
        {"Name": "Daniel Kim", "Email": "daniel.kim@example.com", "Divisions": "Sales", "Is Admin": "No"},
        {"Name": "Priya Nair", "Email": "priya.nair@example.com", "Divisions": "Finance, HR", "Is Admin": "No"},
    ])


def generate_allocations_df() -> pd.DataFrame:
    """Division records on the lab allocation path (9th floor is left to the asset range path)."""
    return pd.DataFrame([
        {"Office": "HQ Campus", "Floor": "5th Floor", "Lab": "Lab A", "Division": "Engineering", "Asset ID Range": "1-30"},
        {"Office": "HQ Campus", "Floor": "5th Floor", "Lab": "Lab A", "Division": "Product", "Asset ID Range": "31-45"},
        {"Office": "HQ Campus", "Floor": "5th Floor", "Lab": "Lab B", "Division": "Sales", "Asset ID Range": "61-90"},
        {"Office": "Tech Park", "Floor": "1st Floor", "Lab": "Dev Bay", "Division": "Engineering", "Asset ID Range": "1-50, 55"},
        {"Office": "Tech Park", "Floor": "2nd Floor", "Lab": "QA Bay", "Division": "Operations", "Asset ID Range": "1-36"},
    ])


def generate_sample_frames() -> Dict[str, pd.DataFrame]:
    return {
        "floors": generate_floors_df(),
        "floor_ranges": generate_floor_ranges_df(),
        "labs": generate_labs_df(),
        "lab_ranges": generate_lab_ranges_df(),
        "divisions": generate_divisions_df(),
        "employees": generate_employees_df(),
        "allocations": generate_allocations_df(),
    }


def load_sample_data(gateway) -> ImportSummary:
    """Seed a gateway with the demo dataset."""
    return import_frames(gateway, generate_sample_frames())


SHEET_NAMES = {
    "floors": "Floors",
    "floor_ranges": "Floor Ranges",
    "labs": "Labs",
    "lab_ranges": "Lab Ranges",
    "divisions": "Divisions",
    "employees": "Employees",
    "allocations": "Division Allocations",
}


def generate_sample_excel(output_dir: str) -> str:
    """Write the demo dataset as a multi-tab import workbook."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "sample_workstations.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for category, df in generate_sample_frames().items():
            df.to_excel(writer, sheet_name=SHEET_NAMES[category], index=False)
    return path


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    print(f"Sample workbook written to {generate_sample_excel(out)}")
