# app/errors.py
"""
Domain errors raised by the services layer.
Every rule violation is raised before any write; routers never catch these,
the handler registered in app/main.py renders them as {success, message, error}.
"""


class ParkingServiceError(Exception):
    status_code = 400
    kind = "ParkingServiceError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ParkingServiceError):
    status_code = 404
    kind = "NotFound"


class ParkingFull(ParkingServiceError):
    kind = "ParkingFull"


class DuplicateActiveEntry(ParkingServiceError):
    kind = "DuplicateActiveEntry"


class CardInactive(ParkingServiceError):
    status_code = 403
    kind = "CardInactive"


class CardVehicleMismatch(ParkingServiceError):
    kind = "CardVehicleMismatch"


class TariffNotFound(ParkingServiceError):
    kind = "TariffNotFound"


class AlreadyCompleted(ParkingServiceError):
    kind = "AlreadyCompleted"


class AlreadyFinalized(ParkingServiceError):
    kind = "AlreadyFinalized"


class InvalidExitTime(ParkingServiceError, ValueError):
    kind = "InvalidExitTime"


class CapacityBelowOccupancy(ParkingServiceError):
    kind = "CapacityBelowOccupancy"


class DuplicateTariff(ParkingServiceError):
    kind = "DuplicateTariff"


class DuplicateVehicle(ParkingServiceError):
    kind = "DuplicateVehicle"


class DuplicateCard(ParkingServiceError):
    kind = "DuplicateCard"


class VehicleInParking(ParkingServiceError):
    kind = "VehicleInParking"


class TransactionFailure(ParkingServiceError):
    """The write pair was rolled back; nothing was committed, retrying is safe."""
    status_code = 503
    kind = "TransactionFailure"


class ParkingOccupied(ParkingServiceError):
    kind = "ParkingOccupied"


class EntryNotBillable(ParkingServiceError):
    """Billing reads only cover completed entries with a stored exit, duration and amount."""
    kind = "EntryNotBillable"
