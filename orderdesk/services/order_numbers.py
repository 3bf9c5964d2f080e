# FILE: orderdesk/services/order_numbers.py
import logging
import random
import time
from typing import Callable, Optional

from sqlalchemy.orm import Session

from orderdesk.core.config import settings
from orderdesk.models.order import Order

logger = logging.getLogger(__name__)


def generate_order_number(prefix: Optional[str] = None,
                          now_ms: Optional[int] = None,
                          rand: Optional[int] = None) -> str:
    """
    <prefix><last 6 digits of unix ms><3-digit random>, e.g. G482913057.
    """
    prefix = settings.ORDER_NUMBER_PREFIX if prefix is None else prefix
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if rand is None:
        rand = random.randint(0, 999)
    return f"{prefix}{str(now_ms)[-6:]}{rand % 1000:03d}"


def order_number_exists(db: Session, number: str) -> bool:
    return db.query(Order.id).filter(Order.order_number == number).first() is not None


def next_order_number(db: Session,
                      generator: Optional[Callable[[], str]] = None) -> str:
    """
    Regenerate until the candidate is not already taken.
    """
    generator = generator or generate_order_number
    candidate = generator()
    while order_number_exists(db, candidate):
        logger.info("Order number %s already taken, regenerating", candidate)
        candidate = generator()
    return candidate
