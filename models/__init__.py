from models.location import Office, Floor, Lab
from models.asset_range import FloorAssetRange, LabAssetRange, DivisionAssetAssignment
from models.division import Division, DivisionRecord, Employee
from models.booking import SeatBooking, WorkstationRequest
from models.impact import CascadeImpact
