"""
Derived views over the job and inventory collections

Nothing here is stored. Every view is recomputed from the working set
each time it is read.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from ..models import TERMINAL_STATUSES, Customer, InventoryItem, Job, JobStatus
from ..services.dates import days_ago_iso, normalize_date, today

RECENT_JOBS_LIMIT = 6


class DateRange(str, Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "7days"
    LAST_30_DAYS = "30days"
    LAST_3_MONTHS = "3months"
    ALL = "all"
    CUSTOM = "custom"


@dataclass
class DashboardStats:
    total: int
    revenue: float
    status_counts: Dict[JobStatus, int]
    recent_jobs: List[Job]
    overdue: List[Job]

    @property
    def wip(self) -> int:
        return self.status_counts[JobStatus.IN_PROGRESS]

    @property
    def completed(self) -> int:
        return self.status_counts[JobStatus.COMPLETED]

    @property
    def delivered(self) -> int:
        return self.status_counts[JobStatus.DELIVERED]

    @property
    def overdue_count(self) -> int:
        return len(self.overdue)


@dataclass
class CustomerHistory:
    customer: Customer
    visit_count: int
    total_spend: float
    first_visit: str
    unique_vehicles: int
    jobs: List[Job] = field(default_factory=list)


@dataclass
class ServiceReport:
    jobs: List[Job]
    total_amount: float


def _newest_first(jobs: Iterable[Job]) -> List[Job]:
    # Stable sort: equal dates keep input order
    return sorted(jobs, key=lambda job: job.date_in, reverse=True)


def _oldest_first(jobs: Iterable[Job]) -> List[Job]:
    return sorted(jobs, key=lambda job: job.date_in)


# ===== CUSTOMERS =====

def rollup_customers(jobs: Iterable[Job]) -> List[Customer]:
    """One customer per mobile number, taken from that number's latest job"""
    customers: Dict[str, Customer] = {}
    for job in _newest_first(job for job in jobs if job.date_in):
        if job.customer_mobile in customers:
            continue
        customers[job.customer_mobile] = Customer(
            id=job.id,
            name=job.customer_name,
            mobile=job.customer_mobile,
            address=job.customer_address,
            created_at=job.date_in,
        )
    return list(customers.values())


def search_customers(customers: Iterable[Customer], term: str = "") -> List[Customer]:
    """Name or mobile substring match, alphabetical by name"""
    needle = (term or "").strip().lower()
    matches = [
        customer for customer in customers
        if not needle or needle in customer.name.lower() or needle in customer.mobile
    ]
    return sorted(matches, key=lambda customer: customer.name.lower())


def customer_jobs(jobs: Iterable[Job], mobile: str) -> List[Job]:
    return _oldest_first(job for job in jobs if job.customer_mobile == mobile)


def customer_history(jobs: Iterable[Job], mobile: str) -> Optional[CustomerHistory]:
    history = customer_jobs(jobs, mobile)
    if not history:
        return None
    latest = _newest_first(history)[0]
    return CustomerHistory(
        customer=Customer(
            id=latest.id,
            name=latest.customer_name,
            mobile=latest.customer_mobile,
            address=latest.customer_address,
            created_at=latest.date_in,
        ),
        visit_count=len(history),
        total_spend=sum(job.charges for job in history),
        first_visit=history[0].date_in,
        unique_vehicles=len({job.vehicle_number for job in history}),
        jobs=history,
    )


def visit_numbers(jobs: Iterable[Job], mobile: str) -> Dict[str, int]:
    """Job id -> 1-based visit number within the customer's history"""
    return {job.id: index for index, job in enumerate(customer_jobs(jobs, mobile), start=1)}


def visit_number(jobs: Iterable[Job], job_id: str) -> Optional[int]:
    job_list = list(jobs)
    target = next((job for job in job_list if job.id == job_id), None)
    if target is None:
        return None
    return visit_numbers(job_list, target.customer_mobile).get(job_id)


# ===== DASHBOARD =====

def date_range_predicate(date_range: DateRange, custom_date: Optional[str] = None,
                         reference: Optional[date] = None) -> Callable[[Job], bool]:
    """Predicate over Job.date_in for a dashboard timeline choice"""
    date_range = DateRange(date_range)
    base = reference or today()
    today_str = base.isoformat()

    if date_range == DateRange.TODAY:
        return lambda job: job.date_in == today_str
    if date_range == DateRange.YESTERDAY:
        yesterday = days_ago_iso(1, base)
        return lambda job: job.date_in == yesterday
    if date_range == DateRange.LAST_7_DAYS:
        threshold = days_ago_iso(7, base)
        return lambda job: job.date_in >= threshold
    if date_range == DateRange.LAST_30_DAYS:
        threshold = days_ago_iso(30, base)
        return lambda job: job.date_in >= threshold
    if date_range == DateRange.LAST_3_MONTHS:
        threshold = days_ago_iso(90, base)
        return lambda job: job.date_in >= threshold
    if date_range == DateRange.CUSTOM:
        selected = normalize_date(custom_date) if custom_date else today_str
        return lambda job: job.date_in == selected
    return lambda job: True


def overdue_jobs(jobs: Iterable[Job], reference: Optional[date] = None) -> List[Job]:
    """Open jobs whose expected delivery date is already past"""
    today_str = (reference or today()).isoformat()
    return [
        job for job in jobs
        if job.status not in TERMINAL_STATUSES and job.expected_delivery_date < today_str
    ]


def dashboard_stats(jobs: Iterable[Job], date_range: DateRange = DateRange.TODAY,
                    custom_date: Optional[str] = None,
                    reference: Optional[date] = None) -> DashboardStats:
    """Stats for the selected timeline; the overdue list ignores the timeline"""
    all_jobs = list(jobs)
    in_range = date_range_predicate(date_range, custom_date, reference)
    filtered = [job for job in all_jobs if job.date_in and in_range(job)]

    status_counts = {status: 0 for status in JobStatus}
    for job in filtered:
        status_counts[job.status] += 1

    return DashboardStats(
        total=len(filtered),
        revenue=sum(job.charges for job in filtered),
        status_counts=status_counts,
        recent_jobs=_newest_first(filtered)[:RECENT_JOBS_LIMIT],
        overdue=overdue_jobs(all_jobs, reference),
    )


# ===== JOB LISTS & REPORTS =====

def filter_jobs(jobs: Iterable[Job], status: Optional[JobStatus] = None,
                search: Optional[str] = None, mobile: Optional[str] = None) -> List[Job]:
    results = list(jobs)
    if mobile:
        results = [job for job in results if job.customer_mobile == mobile]
    elif status:
        status = JobStatus(status)
        results = [job for job in results if job.status == status]

    if search:
        term = search.lower()
        results = [
            job for job in results
            if term in job.customer_name.lower()
            or term in job.customer_mobile
            or term in job.vehicle_number.lower()
        ]
    return _newest_first(results)


def service_report(jobs: Iterable[Job], start: str, end: str,
                   service: Optional[str] = None, customer_name: Optional[str] = None,
                   search: Optional[str] = None) -> ServiceReport:
    """Jobs taken in from start to end (inclusive) with their charges summed"""
    start_str, end_str = normalize_date(start), normalize_date(end)
    term = (search or "").lower()

    matches = []
    for job in jobs:
        if not start_str <= job.date_in <= end_str:
            continue
        if service and service != "All" and service not in job.services:
            continue
        if customer_name and customer_name != "All" and job.customer_name != customer_name:
            continue
        if term and not (
            term in job.customer_name.lower()
            or term in job.vehicle_number.lower()
            or term in job.id.lower()
        ):
            continue
        matches.append(job)

    return ServiceReport(jobs=matches, total_amount=sum(job.charges for job in matches))


def low_stock_items(items: Iterable[InventoryItem]) -> List[InventoryItem]:
    return [item for item in items if item.is_low_stock]
