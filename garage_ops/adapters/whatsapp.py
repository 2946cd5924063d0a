"""
WhatsApp deep-link outreach
Builds wa.me links for job updates, invites, invoices and campaigns.
Sending is left to whoever opens the link.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, Tuple
from urllib.parse import quote

from ..models import Customer, Invoice, Job

logger = logging.getLogger(__name__)

WHATSAPP_BASE_URL = "https://wa.me"
# Same unreserved set as encodeURIComponent
_URI_SAFE = "!~*'()"


def format_whatsapp_number(phone: str, country_code: str = "91") -> str:
    """Digits only, with the country code added to bare 10-digit numbers"""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 10:
        return f"{country_code}{digits}"
    return digits


def build_whatsapp_link(phone: str, message: str, country_code: str = "91") -> str:
    number = format_whatsapp_number(phone, country_code)
    return f"{WHATSAPP_BASE_URL}/{number}?text={quote(message, safe=_URI_SAFE)}"


def build_share_link(message: str) -> str:
    """Link that lets the user pick the recipient"""
    return f"{WHATSAPP_BASE_URL}/?text={quote(message, safe=_URI_SAFE)}"


def completion_message(job: Job, shop_name: str) -> str:
    return (
        f"Hello {job.customer_name}, your vehicle ({job.vehicle_number}) work has been "
        f"completed at {shop_name}. Please visit our shop to collect it. Thank you!"
    )


def welcome_invite_message(customer_name: str, shop_name: str, group_link: str) -> str:
    return (
        f"Welcome {customer_name}! Thank you for choosing {shop_name}. Please join our "
        f"WhatsApp updates group for the latest offers: {group_link}"
    )


def invoice_message(invoice: Invoice) -> str:
    return (
        f"Hello {invoice.customer_name}, your invoice #{invoice.invoice_number} for "
        f"₹{invoice.grand_total:.2f} is ready. Status: {invoice.status.value}."
    )


def campaign_links(customers: Iterable[Customer], message: str,
                   country_code: str = "91") -> List[Tuple[Customer, str]]:
    """One link per customer with a usable number, in the given order"""
    links = []
    for customer in customers:
        if not re.sub(r"\D", "", customer.mobile or ""):
            logger.warning(f"⚠️ Skipping {customer.name or customer.id}: no mobile number")
            continue
        links.append((customer, build_whatsapp_link(customer.mobile, message, country_code)))
    return links


class JobNotifier(ABC):
    """Receives job lifecycle events from GarageDatabase"""

    @abstractmethod
    def job_completed(self, job: Job) -> None:
        pass


class WhatsAppNotifier(JobNotifier):
    """Hands a completion link to an external opener (browser, UI, queue)"""

    def __init__(self, shop_name: str, country_code: str = "91",
                 handoff: Optional[Callable[[str], None]] = None):
        self.shop_name = shop_name
        self.country_code = country_code
        self.handoff = handoff

    def completion_link(self, job: Job) -> str:
        return build_whatsapp_link(
            job.customer_mobile,
            completion_message(job, self.shop_name),
            self.country_code,
        )

    def job_completed(self, job: Job) -> None:
        link = self.completion_link(job)
        logger.info(f"📱 Completion notice ready for {job.customer_name} ({job.vehicle_number})")
        if self.handoff is not None:
            self.handoff(link)
        else:
            logger.info(f"   🔗 {link}")
