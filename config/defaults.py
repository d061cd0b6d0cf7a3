"""Default configuration constants for the Workstation Allocation Tracker."""

# Display template for a single asset ID: Admin/WS/F-{floor}/{id:03d}
ASSET_ID_PREFIX = "Admin/WS"
ASSET_ID_PAD_WIDTH = 3
RANGE_SEPARATOR = ", "
FORMATTED_RANGE_JOINER = " to "

# Persistence tables
OFFICES = "offices"
FLOORS = "floors"
LABS = "labs"
FLOOR_ASSET_RANGES = "floor_asset_ranges"
LAB_ASSET_RANGES = "lab_asset_ranges"
DIVISION_ASSET_ASSIGNMENTS = "division_asset_assignments"
DIVISION_RECORDS = "division_records"
SEAT_BOOKINGS = "seat_bookings"
DIVISIONS = "divisions"
EMPLOYEES = "employees"
WORKSTATION_REQUESTS = "workstation_requests"

ALL_TABLES = [
    OFFICES,
    FLOORS,
    LABS,
    FLOOR_ASSET_RANGES,
    LAB_ASSET_RANGES,
    DIVISION_ASSET_ASSIGNMENTS,
    DIVISION_RECORDS,
    SEAT_BOOKINGS,
    DIVISIONS,
    EMPLOYEES,
    WORKSTATION_REQUESTS,
]

# Columns that must be unique together on create (enforced by the gateway)
UNIQUE_KEYS = {
    FLOOR_ASSET_RANGES: ("floor_id",),
    LAB_ASSET_RANGES: ("floor_range_id", "lab_id"),
    DIVISION_ASSET_ASSIGNMENTS: ("lab_range_id", "division"),
    DIVISION_RECORDS: ("floor_id", "lab_name", "division"),
    LABS: ("floor_id", "name"),
}

# Booking / request lifecycle
STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUSES = [STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED]

# Backend error markers meaning "table not provisioned"
SCHEMA_MISSING_CODES = ["PGRST205", "42P01"]
# Message patterns (lower-cased) that name a missing relation or table
SCHEMA_MISSING_MESSAGES = [
    r"relation \S+ does not exist",
    r"table \S+ does not exist",
    r"could not find the table",
]

# Rejection messages list at most this many IDs before summarising
MAX_IDS_IN_MESSAGE = 20

# Request numbers: WSR-0001, WSR-0002, ...
REQUEST_NUMBER_PREFIX = "WSR"

# Logging
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Lab utilization alert threshold (in use + pending over total)
LAB_SATURATION_THRESHOLD = 0.90
