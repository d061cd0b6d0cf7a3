"""Schema validation for bulk import workbooks."""

from dataclasses import dataclass, field
from typing import Dict, List
import pandas as pd


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def merge(self, other: "ValidationResult"):
        self.is_valid = self.is_valid and other.is_valid
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


FLOOR_REQUIRED_COLUMNS = ["Office", "Floor"]

FLOOR_RANGE_REQUIRED_COLUMNS = ["Office", "Floor", "Asset ID Range"]

LAB_REQUIRED_COLUMNS = ["Office", "Floor", "Lab", "Total Workstations"]

LAB_RANGE_REQUIRED_COLUMNS = ["Office", "Floor", "Lab", "Asset ID Range"]

DIVISION_REQUIRED_COLUMNS = ["Division"]

EMPLOYEE_REQUIRED_COLUMNS = ["Name", "Email", "Divisions"]

ALLOCATION_REQUIRED_COLUMNS = ["Office", "Floor", "Lab", "Division", "Asset ID Range"]


def _check_required_columns(df: pd.DataFrame, required: List[str], file_label: str) -> ValidationResult:
    result = ValidationResult()
    missing = [col for col in required if col not in df.columns]
    if missing:
        result.is_valid = False
        result.errors.append(f"{file_label}: Missing required columns: {', '.join(missing)}")
    if df.empty:
        result.is_valid = False
        result.errors.append(f"{file_label}: File contains no data rows.")
    return result


def _check_duplicates(df: pd.DataFrame, subset: List[str], file_label: str, result: ValidationResult):
    dupes = df.duplicated(subset=subset, keep=False)
    if dupes.any():
        result.is_valid = False
        dupe_rows = df[dupes][subset].drop_duplicates().to_dict("records")
        result.errors.append(f"{file_label}: Duplicate entries: {dupe_rows}")


def _check_blank(df: pd.DataFrame, column: str, file_label: str, result: ValidationResult):
    blank = df[column].isna() | (df[column].astype(str).str.strip() == "")
    if blank.any():
        result.is_valid = False
        rows = [int(i) + 2 for i in df.index[blank]]  # header is row 1
        result.errors.append(f"{file_label}: '{column}' is empty in row(s) {rows}")


def validate_floors(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, FLOOR_REQUIRED_COLUMNS, "Floors")
    if not result.is_valid:
        return result
    _check_duplicates(df, ["Office", "Floor"], "Floors", result)
    return result


def validate_floor_ranges(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, FLOOR_RANGE_REQUIRED_COLUMNS, "Floor Ranges")
    if not result.is_valid:
        return result
    _check_blank(df, "Asset ID Range", "Floor Ranges", result)
    _check_duplicates(df, ["Office", "Floor"], "Floor Ranges", result)
    return result


def validate_labs(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, LAB_REQUIRED_COLUMNS, "Labs")
    if not result.is_valid:
        return result

    totals = pd.to_numeric(df["Total Workstations"], errors="coerce")
    if totals.isna().any():
        result.is_valid = False
        result.errors.append("Labs: Total Workstations must be a number.")
    elif (totals <= 0).any():
        result.is_valid = False
        result.errors.append("Labs: Total Workstations must be greater than zero.")

    _check_duplicates(df, ["Office", "Floor", "Lab"], "Labs", result)
    return result


def validate_lab_ranges(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, LAB_RANGE_REQUIRED_COLUMNS, "Lab Ranges")
    if not result.is_valid:
        return result
    _check_blank(df, "Asset ID Range", "Lab Ranges", result)
    _check_duplicates(df, ["Office", "Floor", "Lab"], "Lab Ranges", result)
    return result


def validate_divisions(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, DIVISION_REQUIRED_COLUMNS, "Divisions")
    if not result.is_valid:
        return result
    names = df["Division"].astype(str).str.strip().str.lower()
    if names.duplicated().any():
        result.is_valid = False
        result.errors.append(
            f"Divisions: Duplicate division names: {df[names.duplicated(keep=False)]['Division'].unique().tolist()}"
        )
    return result


def validate_employees(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, EMPLOYEE_REQUIRED_COLUMNS, "Employees")
    if not result.is_valid:
        return result
    _check_blank(df, "Name", "Employees", result)
    return result


def validate_allocations(df: pd.DataFrame) -> ValidationResult:
    """Asset ID ranges themselves are checked by the allocation services at import time."""
    result = _check_required_columns(df, ALLOCATION_REQUIRED_COLUMNS, "Division Allocations")
    if not result.is_valid:
        return result
    _check_blank(df, "Asset ID Range", "Division Allocations", result)
    _check_duplicates(df, ["Office", "Floor", "Lab", "Division"], "Division Allocations", result)
    return result


SHEET_VALIDATORS = {
    "floors": validate_floors,
    "floor_ranges": validate_floor_ranges,
    "labs": validate_labs,
    "lab_ranges": validate_lab_ranges,
    "divisions": validate_divisions,
    "employees": validate_employees,
    "allocations": validate_allocations,
}


def _keys(df: pd.DataFrame, columns: List[str]) -> set:
    return {tuple(str(v).strip() for v in row) for row in df[columns].itertuples(index=False)}


def validate_cross_sheet(frames: Dict[str, pd.DataFrame]) -> ValidationResult:
    """Check that labs, ranges and allocations point at floors, labs and divisions that exist."""
    result = ValidationResult()
    floors = _keys(frames["floors"], ["Office", "Floor"])
    labs = _keys(frames["labs"], ["Office", "Floor", "Lab"])
    divisions = set(frames["divisions"]["Division"].astype(str).str.strip())

    unknown_floors = sorted(k for k in _keys(frames["labs"], ["Office", "Floor"]) if k not in floors)
    if unknown_floors:
        result.is_valid = False
        result.errors.append(f"Labs: Unknown floors: {unknown_floors}")

    if "floor_ranges" in frames:
        missing = sorted(k for k in _keys(frames["floor_ranges"], ["Office", "Floor"]) if k not in floors)
        if missing:
            result.is_valid = False
            result.errors.append(f"Floor Ranges: Unknown floors: {missing}")

    for sheet, label in (("lab_ranges", "Lab Ranges"), ("allocations", "Division Allocations")):
        if sheet in frames:
            missing = sorted(k for k in _keys(frames[sheet], ["Office", "Floor", "Lab"]) if k not in labs)
            if missing:
                result.is_valid = False
                result.errors.append(f"{label}: Unknown labs: {missing}")

    if "allocations" in frames:
        unknown = set(frames["allocations"]["Division"].astype(str).str.strip()) - divisions
        if unknown:
            result.is_valid = False
            result.errors.append(f"Division Allocations: Unknown divisions: {', '.join(sorted(unknown))}")

    if "employees" in frames:
        listed = set()
        for value in frames["employees"]["Divisions"].dropna():
            listed.update(d.strip() for d in str(value).split(",") if d.strip())
        unknown = listed - divisions
        if unknown:
            result.warnings.append(
                f"Employees reference unknown divisions: {', '.join(sorted(unknown))}. "
                "They will be kept on the employee but cannot be allocated."
            )
    return result


def validate_workbook(frames: Dict[str, pd.DataFrame]) -> ValidationResult:
    result = ValidationResult()
    for sheet, df in frames.items():
        result.merge(SHEET_VALIDATORS[sheet](df))
    if result.is_valid:
        result.merge(validate_cross_sheet(frames))
    return result
