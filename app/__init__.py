"""
                QR Restaurant Ordering

Backend for per-table QR code menus: restaurants publish menus,
guests scan a table code, build a cart and place an order.
"""

__version__ = "1.0.0"
