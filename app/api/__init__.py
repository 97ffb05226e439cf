"""
REST API routers, one module per resource. All are mounted under /api.
"""

from app.api import admin, auth, banner, categories, menu, orders, qr, subadmin, upload

routers = [
    auth.router,
    admin.router,
    subadmin.router,
    menu.router,
    categories.router,
    upload.router,
    orders.router,
    qr.router,
    banner.router,
]

__all__ = ["routers"]
