from .tenancy import Business
from .auth import User
from .customers import Customer
from .catalog import Category, Product
from .orders import OrderStatus, Order, OrderItem, Payment
from .appointments import Appointment
from .settings import Setting
from .security import SecurityEvent

__all__ = [
    'Business',
    'User',
    'Customer',
    'Category', 'Product',
    'OrderStatus', 'Order', 'OrderItem', 'Payment',
    'Appointment',
    'Setting',
    'SecurityEvent',
]
