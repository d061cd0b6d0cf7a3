"""Row conversion at the gateway boundary and CSV/XLSX bulk import."""

import logging
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple

import pandas as pd

from config.defaults import (
    OFFICES, FLOORS, LABS, FLOOR_ASSET_RANGES, LAB_ASSET_RANGES, DIVISION_ASSET_ASSIGNMENTS,
    DIVISION_RECORDS, SEAT_BOOKINGS, DIVISIONS, EMPLOYEES, WORKSTATION_REQUESTS,
)
from engine.asset_ranges import AssetRangeService
from engine.division_registry import DivisionRegistry
from engine.errors import AllocationError
from engine.workstation_data import WorkstationDataService
from models import (
    Office, Floor, Lab, FloorAssetRange, LabAssetRange, DivisionAssetAssignment,
    Division, DivisionRecord, Employee, SeatBooking, WorkstationRequest,
)

logger = logging.getLogger(__name__)

TABLE_MODELS = {
    OFFICES: Office,
    FLOORS: Floor,
    LABS: Lab,
    FLOOR_ASSET_RANGES: FloorAssetRange,
    LAB_ASSET_RANGES: LabAssetRange,
    DIVISION_ASSET_ASSIGNMENTS: DivisionAssetAssignment,
    DIVISION_RECORDS: DivisionRecord,
    SEAT_BOOKINGS: SeatBooking,
    DIVISIONS: Division,
    EMPLOYEES: Employee,
    WORKSTATION_REQUESTS: WorkstationRequest,
}


def row_to_entity(table: str, row: dict):
    """Build the typed entity for a raw backend row.

    Unknown columns (created_at, updated_at, ...) are dropped and null values
    become None. Malformed rows raise ValueError from the model.
    """
    model = TABLE_MODELS[table]
    names = {f.name for f in fields(model)}
    kwargs = {}
    for key, value in row.items():
        if key not in names:
            continue
        if value is not None and not isinstance(value, (list, dict)) and pd.isna(value):
            value = None
        kwargs[key] = value
    if kwargs.get("id") is not None:
        kwargs["id"] = str(kwargs["id"])
    return model(**kwargs)


# Expected sheet names for the import workbook (case-insensitive matching)
SHEET_ALIASES = {
    "floors": ["floors", "floor", "offices & floors", "floor master"],
    "floor_ranges": ["floor ranges", "floor asset ranges", "floor range"],
    "labs": ["labs", "lab", "lab allocations", "workstation data"],
    "lab_ranges": ["lab ranges", "lab asset ranges", "lab range"],
    "divisions": ["divisions", "division", "division master"],
    "employees": ["employees", "employee", "users"],
    "allocations": ["division allocations", "allocations", "division records"],
}

REQUIRED_SHEETS = ["floors", "labs", "divisions"]


def _match_sheet(sheet_names: List[str], category: str) -> Optional[str]:
    """Find a sheet name matching the given category, or None."""
    lower_map = {s.lower().strip(): s for s in sheet_names}
    for alias in SHEET_ALIASES[category]:
        if alias in lower_map:
            return lower_map[alias]
    return None


def load_workbook(uploaded_file) -> Dict[str, pd.DataFrame]:
    """Load the import workbook into {category: DataFrame}.

    Floors, Labs and Divisions sheets are required; Floor Ranges, Lab Ranges,
    Employees and Division Allocations are read when present.
    """
    xl = pd.ExcelFile(uploaded_file, engine="openpyxl")
    sheet_names = xl.sheet_names

    frames = {}
    for category in SHEET_ALIASES:
        sheet = _match_sheet(sheet_names, category)
        if sheet is None:
            if category in REQUIRED_SHEETS:
                raise ValueError(
                    f"Could not find a sheet for '{category}'. "
                    f"Expected one of: {SHEET_ALIASES[category]}. "
                    f"Found sheets: {sheet_names}"
                )
            continue
        frames[category] = pd.read_excel(xl, sheet_name=sheet)
    return frames


def _cell(row: pd.Series, column: str) -> Optional[str]:
    if column not in row.index or pd.isna(row[column]):
        return None
    text = str(row[column]).strip()
    return text or None


@dataclass
class ImportSummary:
    created: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def count(self, table: str, n: int = 1):
        self.created[table] = self.created.get(table, 0) + n


class WorkbookImporter:
    """Writes a validated workbook into a gateway through the allocation services.

    Every asset ID range goes through the same consistency checks as manual
    entry; a rejected row is reported and the import continues.
    """

    def __init__(self, gateway):
        self.gateway = gateway
        self.asset_ranges = AssetRangeService(gateway)
        self.workstation_data = WorkstationDataService(gateway)
        self.divisions = DivisionRegistry(gateway)
        self.summary = ImportSummary()
        self._offices: Dict[str, str] = {o.name: o.id for o in gateway.list(OFFICES)}
        self._floors: Dict[Tuple[str, str], Floor] = {}
        self._labs: Dict[Tuple[str, str, str], Lab] = {}
        self._floor_ranges: Dict[Tuple[str, str], str] = {}

    def _office_id(self, name: str) -> str:
        if name not in self._offices:
            office = self.gateway.create(OFFICES, Office(id="", name=name))
            self._offices[name] = office.id
            self.summary.count(OFFICES)
        return self._offices[name]

    def _floor(self, office: str, name: str) -> Floor:
        key = (office, name)
        if key not in self._floors:
            office_id = self._office_id(office)
            existing = self.gateway.list(FLOORS, office_id=office_id, name=name)
            if existing:
                self._floors[key] = existing[0]
            else:
                self._floors[key] = self.gateway.create(FLOORS, Floor(id="", office_id=office_id, name=name))
                self.summary.count(FLOORS)
        return self._floors[key]

    def _record_error(self, sheet: str, index, exc: Exception):
        message = f"{sheet} row {int(index) + 2}: {exc}"
        logger.warning("Import rejected %s", message)
        self.summary.errors.append(message)

    def import_frames(self, frames: Dict[str, pd.DataFrame]) -> ImportSummary:
        for _, row in frames["floors"].iterrows():
            self._floor(_cell(row, "Office"), _cell(row, "Floor"))

        for _, row in frames["divisions"].iterrows():
            name = _cell(row, "Division")
            if name and not any(d.name.lower() == name.lower() for d in self.divisions.list_divisions()):
                self.divisions.create_division(name)
                self.summary.count(DIVISIONS)

        for index, row in frames["labs"].iterrows():
            key = (_cell(row, "Office"), _cell(row, "Floor"), _cell(row, "Lab"))
            floor = self._floor(key[0], key[1])
            try:
                self._labs[key] = self.workstation_data.create_lab_allocation(
                    floor.id, key[2], int(row["Total Workstations"]), _cell(row, "Asset ID Range"),
                )
                self.summary.count(LABS)
            except AllocationError as exc:
                self._record_error("Labs", index, exc)

        for index, row in frames.get("floor_ranges", pd.DataFrame()).iterrows():
            key = (_cell(row, "Office"), _cell(row, "Floor"))
            try:
                created = self.asset_ranges.create_floor_range(self._floor(*key).id, _cell(row, "Asset ID Range"))
                self._floor_ranges[key] = created.id
                self.summary.count(FLOOR_ASSET_RANGES)
            except AllocationError as exc:
                self._record_error("Floor Ranges", index, exc)

        for index, row in frames.get("lab_ranges", pd.DataFrame()).iterrows():
            key = (_cell(row, "Office"), _cell(row, "Floor"), _cell(row, "Lab"))
            floor_range_id = self._floor_ranges.get(key[:2])
            if floor_range_id is None or key not in self._labs:
                self.summary.errors.append(f"Lab Ranges row {int(index) + 2}: no floor range or lab for {key}")
                continue
            try:
                self.asset_ranges.create_lab_range(floor_range_id, self._labs[key].id, _cell(row, "Asset ID Range"))
                self.summary.count(LAB_ASSET_RANGES)
            except AllocationError as exc:
                self._record_error("Lab Ranges", index, exc)

        for index, row in frames.get("allocations", pd.DataFrame()).iterrows():
            floor = self._floor(_cell(row, "Office"), _cell(row, "Floor"))
            try:
                self.workstation_data.add_division_records(
                    floor.id, _cell(row, "Lab"), [(_cell(row, "Division"), _cell(row, "Asset ID Range"), None)],
                )
                self.summary.count(DIVISION_RECORDS)
            except AllocationError as exc:
                self._record_error("Division Allocations", index, exc)

        for _, row in frames.get("employees", pd.DataFrame()).iterrows():
            self.gateway.create(EMPLOYEES, Employee(
                id="",
                name=_cell(row, "Name"),
                email=_cell(row, "Email") or "",
                divisions=_cell(row, "Divisions") or "",
                is_admin=str(_cell(row, "Is Admin") or "").lower() in ("yes", "true", "1"),
            ))
            self.summary.count(EMPLOYEES)

        logger.info("Import finished: %s, %d row(s) rejected", self.summary.created, len(self.summary.errors))
        return self.summary


def import_frames(gateway, frames: Dict[str, pd.DataFrame]) -> ImportSummary:
    return WorkbookImporter(gateway).import_frames(frames)
