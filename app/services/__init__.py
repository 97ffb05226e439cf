"""
                        Services Module

Contains all business logic services with the hybrid architecture pattern.
External integrations have Mock (development) and Real (production) implementations.

Services:
    - notifications: SendGrid email and Twilio WhatsApp order confirmations
    - storage: Cloudinary image hosting (local disk in development)
    - pricing: line and order totals
    - cart: guest cart, its persistence and menu flattening
    - excel_manager: Thread-safe Excel order ledger
"""

from app.services.excel_manager import ExcelManager

__all__ = ["ExcelManager"]
