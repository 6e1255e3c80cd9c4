from enum import Enum

# Enums
class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    MASTER_INVENTORY_HANDLER = "master_inventory_handler"
    STOCK_IN_MANAGER = "stock_in_manager"
    STOCK_OUT_MANAGER = "stock_out_manager"
    ATTENDANCE_MANAGER = "attendance_manager"

class TransactionType(str, Enum):
    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"

class AlertLevel(str, Enum):
    LOW = "low"
    CRITICAL = "critical"

class UnitType(str, Enum):
    PCS = "PCS"        # Piece
    KG = "KG"          # Kilogram
    G = "G"            # Gram
    MG = "MG"          # Milligram
    L = "L"            # Liter
    ML = "ML"          # Milliliter
    DOZEN = "DOZEN"
