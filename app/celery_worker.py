"""
Celery Worker Configuration

Redis is both broker and result backend. Order confirmations and Excel
ledger appends run on separate queues:

    celery -A app.celery_worker worker -Q notifications,ledger -l info
"""

from celery import Celery

from app.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    'qr_ordering_worker',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['app.tasks'],
)

celery_app.conf.update(
    # Serialization: payloads are plain dicts built by the order router
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # Routing
    task_default_queue='ledger',
    task_routes={
        'app.tasks.send_order_notifications': {'queue': 'notifications'},
        'app.tasks.export_order_to_excel': {'queue': 'ledger'},
    },

    # One task at a time per worker process
    worker_prefetch_multiplier=1,
    worker_concurrency=4,

    # Time limits (seconds)
    task_soft_time_limit=60,
    task_time_limit=90,

    result_expires=3600,

    task_acks_late=True,
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,
)


if __name__ == '__main__':
    celery_app.start()
