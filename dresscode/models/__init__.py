from .stores import Store, DocumentSequence
from .auth import User, Address, SessionToken
from .catalog import Product, Variant, VariantSize, StoreQuantity, AssignedHistory
from .inventory import AssignedInventory, AssignedInventoryLine, RaisedInventory, RaisedInventoryLine
from .orders import Order, OrderLine, Payment, ReturnOrder, ReturnOrderLine, Quote
from .billing import Customer, Bill, BillLine, BillEditRequest, BillEditRequestLine, OldBill
from .coupons import Coupon, CouponUsage

__all__ = [
    'Store', 'DocumentSequence',
    'User', 'Address', 'SessionToken',
    'Product', 'Variant', 'VariantSize', 'StoreQuantity', 'AssignedHistory',
    'AssignedInventory', 'AssignedInventoryLine', 'RaisedInventory', 'RaisedInventoryLine',
    'Order', 'OrderLine', 'Payment', 'ReturnOrder', 'ReturnOrderLine', 'Quote',
    'Customer', 'Bill', 'BillLine', 'BillEditRequest', 'BillEditRequestLine', 'OldBill',
    'Coupon', 'CouponUsage',
]
