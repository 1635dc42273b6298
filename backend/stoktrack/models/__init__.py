from .auth import User, SessionToken
from .catalog import Product, Kiosk
from .stock import StockInRecord, StockOutRecord, AvailabilitySnapshot

__all__ = [
    'User', 'SessionToken',
    'Product', 'Kiosk',
    'StockInRecord', 'StockOutRecord', 'AvailabilitySnapshot',
]
