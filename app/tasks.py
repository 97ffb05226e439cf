"""
Celery Tasks
Background work queued when a guest places an order.
"""

import asyncio
import logging
import time

from app.celery_worker import celery_app
from app.services.excel_manager import ExcelManager
from app.services.notifications import OrderConfirmationMessage, get_notification_service

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True
)
def export_order_to_excel(self, order_data: dict) -> dict:
    """
    Append an order to the Excel ledger.

    Args:
        order_data: Flat order record (see excel_manager.order_record)

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = order_data.get('order_id', 'unknown')

    logger.info(f"📋 Task {task_id}: Exporting order {order_id}")
    start_time = time.time()

    result = ExcelManager.export_order(order_data)

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    if result['success']:
        logger.info(f"✅ Task {task_id}: Order {order_id} exported in {elapsed}s")
    else:
        logger.warning(f"⚠️ Task {task_id}: Order {order_id} failed - {result['message']}")

    return result


@celery_app.task(bind=True, max_retries=2, default_retry_delay=10)
def send_order_notifications(self, confirmation: dict) -> dict:
    """
    Send the guest their order confirmation over WhatsApp and email.

    Args:
        confirmation: Fields of OrderConfirmationMessage
    """
    message = OrderConfirmationMessage(**confirmation)
    service = get_notification_service()

    result = asyncio.run(service.send_order_confirmation(message))

    if result.success:
        logger.info(f"📨 Order {message.order_id}: confirmation sent via {result.provider}")
    else:
        logger.warning(f"⚠️ Order {message.order_id}: confirmation failed - {result.error_message}")

    return {
        'success': result.success,
        'order_id': message.order_id,
        'message_id': result.message_id,
        'provider': result.provider,
        'error': result.error_message,
    }

