from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    VIEWER = "viewer"

    def __str__(self):
        return self.value


class ParcelPolicy(str, Enum):
    CEILING = "ceiling"
    BIN_PACKING = "bin_packing"

    def __str__(self):
        return self.value


class CarrierStore(str, Enum):
    DATABASE = "database"
    MEMORY = "memory"

    def __str__(self):
        return self.value


class RateOutcome(str, Enum):
    QUOTED = "quoted"
    EMPTY = "empty"
    INVALID = "invalid"
    ERROR = "error"

    def __str__(self):
        return self.value
