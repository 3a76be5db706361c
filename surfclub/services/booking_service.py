"""
Booking orchestrator: validated, priced, all-or-nothing booking creation.

TRANSACTION STRATEGY: One owned scope per call
==============================================

Problem:
  A package touches several (slot, date, activity) tuples. If the third claim
  fails after the first two succeeded, the first two must not stay reserved,
  and no reader may see a booking whose sessions are half written.

Solution:
  Every public call opens exactly one session and one transaction:

    async with session_factory() as session, session.begin():
        validate -> price -> plan -> pre-check -> persist -> reserve

  Capacity claims are conditional UPDATEs issued inside that transaction (see
  capacity_ledger). Any BookingError or storage error leaves the block and
  rolls back every write of the call, claims included. Nothing is nested and
  nothing is retried.

  Business failures come back as `Result.failure(error)`; storage failures
  (SQLAlchemyError) are re-raised unchanged after the rollback.

The pre-check before persisting only produces a clearer error early; the
conditional UPDATE in reserve_many() is what actually guarantees the ceiling.
"""

from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Awaitable, Callable, Optional, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from surfclub.core.catalog import (
    LEGACY_ACTIVITY_BOOKING_TYPE,
    PACKAGE_DEFINITIONS,
    AccommodationType,
    BookingStatus,
    BookingType,
    PackageType,
    PaymentStatus,
)
from surfclub.core.config import Settings, get_settings
from surfclub.core.errors import (
    ActivityNotConfigured,
    BookingError,
    CapacityError,
    NotFoundError,
    Result,
    ScheduleMismatchError,
    ValidationError,
)
from surfclub.core.logging import bind_booking_context, get_logger, unbind_booking_context
from surfclub.core.metrics import (
    booking_latency,
    booking_operation_latency,
    record_booking_attempt,
    record_booking_operation,
    record_cancellation,
)
from surfclub.models.booking import (
    ActivityBooking,
    Booking,
    BookingPerson,
    PackageBooking,
    PackagePersonSession,
    PackageSession,
    StayBooking,
)
from surfclub.models.customer import Customer
from surfclub.models.slot import Slot
from surfclub.schemas.booking import (
    ActivityBookingCreate,
    BookingFilters,
    BookingView,
    PackageBookingCreate,
    StayBookingCreate,
)
from surfclub.services import capacity_ledger, package_planner
from surfclub.services.capacity_ledger import CapacityClaim
from surfclub.services.customer_service import customer_stats, get_or_create_customer
from surfclub.services.pricing import PricingEngine

logger = get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M")

RECENT_BOOKINGS = 10


def _parse(model: type[M], request: Union[M, dict]) -> M:
    """Accept a parsed request model or a raw mapping."""
    if isinstance(request, model):
        return request
    try:
        return model.model_validate(request)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid booking request",
            errors=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc


def _outcome(error: BookingError) -> str:
    if isinstance(error, CapacityError):
        return "capacity"
    if isinstance(error, ScheduleMismatchError):
        return "schedule"
    if isinstance(error, ValidationError):
        return "validation"
    if isinstance(error, NotFoundError):
        return "not_found"
    return "error"


async def _precheck(db: AsyncSession, claims: list[CapacityClaim], session_numbers: Optional[dict] = None) -> None:
    """Report the first tuple that cannot take its head count, before any write."""
    for claim in claims:
        remaining = await capacity_ledger.remaining_for_activity(
            db, claim.slot_id, claim.session_date, claim.activity_type
        )
        if remaining is None:
            raise ActivityNotConfigured(
                f"Activity {claim.activity_type} is not offered in slot {claim.slot_id}",
                slot_id=claim.slot_id,
                activity_type=claim.activity_type,
            )
        if claim.count > remaining.available_spots:
            where = f"on {claim.session_date.isoformat()}"
            if session_numbers:
                where = f"for session {session_numbers[claim.session_date]} {where}"
            raise CapacityError(
                f"Not enough {claim.activity_type} capacity {where}: "
                f"requested {claim.count}, available {remaining.available_spots}",
                slot_id=claim.slot_id,
                session_date=claim.session_date.isoformat(),
                activity_type=claim.activity_type,
                requested=claim.count,
                available=remaining.available_spots,
            )


class BookingOrchestrator:
    """Transactional façade over the ledger, planner and pricing engine."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        pricing: PricingEngine,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.pricing = pricing
        self.settings = settings or get_settings()

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
        booking_type: Optional[str] = None,
    ) -> Result[T]:
        """
        Run `work` in one owned transaction.

        Creation calls pass their booking_type and feed the booking attempt
        metrics; everything else is counted per operation.
        """
        if booking_type is not None:
            bind_booking_context(operation=operation, booking_type=booking_type)
            timer = booking_latency.labels(booking_type=booking_type).time()

            def record(status: str) -> None:
                record_booking_attempt(booking_type, status)
        else:
            bind_booking_context(operation=operation)
            timer = booking_operation_latency.labels(operation=operation).time()

            def record(status: str) -> None:
                record_booking_operation(operation, status)

        try:
            with timer:
                async with self.session_factory() as session, session.begin():
                    value = await work(session)
        except BookingError as exc:
            record(_outcome(exc))
            logger.warning(f"{operation}_rejected", code=exc.code, reason=exc.message)
            return Result.failure(exc)
        except SQLAlchemyError as exc:
            record("error")
            logger.error(f"{operation}_storage_error", error=str(exc))
            raise
        finally:
            unbind_booking_context("operation", "booking_type", "customer_email")
        record("success")
        return Result.success(value)

    # Creation

    async def create_activity_booking(self, request: Union[ActivityBookingCreate, dict]) -> Result[int]:
        return await self._run(
            "activity_booking", lambda db: self._create_activity(db, request), BookingType.ACTIVITY.value
        )

    async def _create_activity(self, db: AsyncSession, request) -> int:
        req = _parse(ActivityBookingCreate, request)
        bind_booking_context(customer_email=req.customer_email)

        activities = []
        for index, person in enumerate(req.people):
            activity = person.activity_type or req.activity_type
            if activity is None:
                raise ValidationError(
                    f"No activity chosen for person {index} ({person.name})", person_index=index
                )
            activities.append(activity.value)

        await package_planner.resolve_slot(db, req.slot_id, req.session_date)
        quote = self.pricing.activity_quote(len(req.people))

        claims = [
            CapacityClaim(slot_id=req.slot_id, session_date=req.session_date, activity_type=activity, count=count)
            for activity, count in sorted(Counter(activities).items())
        ]
        await _precheck(db, claims)

        customer = await get_or_create_customer(db, req.customer_name, req.customer_email, req.customer_phone)
        booking = self._new_booking(customer, BookingType.ACTIVITY, len(req.people), quote)
        db.add(booking)
        await db.flush()

        db.add(
            ActivityBooking(
                booking_id=booking.id,
                slot_id=req.slot_id,
                session_date=req.session_date,
                activity_type=req.activity_type.value if req.activity_type else None,
            )
        )
        for index, (person, activity) in enumerate(zip(req.people, activities)):
            db.add(
                BookingPerson(
                    booking_id=booking.id,
                    person_index=index,
                    name=person.name,
                    age=person.age,
                    activity_type=activity,
                )
            )
        await db.flush()

        await capacity_ledger.reserve_many(db, claims)
        logger.info(
            "booking_created",
            booking_id=booking.id,
            slot_id=req.slot_id,
            date=req.session_date.isoformat(),
            people=len(req.people),
            activities=dict(Counter(activities)),
            total_amount=str(quote.price.total_amount),
        )
        return booking.id

    async def create_package_booking(self, request: Union[PackageBookingCreate, dict]) -> Result[int]:
        return await self._run(
            "package_booking", lambda db: self._create_package(db, request), BookingType.PACKAGE.value
        )

    async def _create_package(self, db: AsyncSession, request) -> int:
        req = _parse(PackageBookingCreate, request)
        bind_booking_context(customer_email=req.customer_email)
        people_count = len(req.people)

        # Raises CapacityExceeded before anything is planned or written
        quote = self.pricing.package_quote(req.package_type, req.accommodation_type, people_count)
        planned = await package_planner.plan_sessions(
            db, req.package_type, req.check_in_date, req.sessions, people_count
        )
        check_out = package_planner.check_out_date(req.package_type, req.check_in_date)

        claims = capacity_ledger.merge_claims(c for session in planned for c in session.claims())
        await _precheck(db, claims, {s.session_date: s.session_number for s in planned})

        customer = await get_or_create_customer(db, req.customer_name, req.customer_email, req.customer_phone)
        booking = self._new_booking(customer, BookingType.PACKAGE, people_count, quote)
        db.add(booking)
        await db.flush()

        package = PackageBooking(
            booking_id=booking.id,
            package_type=req.package_type.value,
            accommodation_type=req.accommodation_type.value,
            check_in_date=req.check_in_date,
            check_out_date=check_out,
            units_needed=quote.requirements.units_needed,
        )
        people = [
            BookingPerson(booking_id=booking.id, person_index=index, name=person.name, age=person.age)
            for index, person in enumerate(req.people)
        ]
        db.add(package)
        db.add_all(people)
        await db.flush()

        for planned_session in planned:
            session_row = PackageSession(
                package_booking_id=package.id,
                session_number=planned_session.session_number,
                session_date=planned_session.session_date,
                slot_id=planned_session.slot_id,
                auto_allocated=planned_session.auto_allocated,
            )
            db.add(session_row)
            await db.flush()
            db.add_all(
                PackagePersonSession(
                    package_session_id=session_row.id,
                    booking_person_id=people[index].id,
                    activity_type=activity,
                )
                for index, activity in sorted(planned_session.assignments.items())
            )
        await db.flush()

        await capacity_ledger.reserve_many(db, claims)
        logger.info(
            "booking_created",
            booking_id=booking.id,
            package_type=req.package_type.value,
            accommodation=req.accommodation_type.value,
            check_in=req.check_in_date.isoformat(),
            people=people_count,
            sessions=len(planned),
            auto_allocated=sum(1 for s in planned if s.auto_allocated),
            total_amount=str(quote.price.total_amount),
        )
        return booking.id

    async def create_stay_booking(self, request: Union[StayBookingCreate, dict]) -> Result[int]:
        return await self._run(
            "stay_booking", lambda db: self._create_stay(db, request), BookingType.STAY_ONLY.value
        )

    async def _create_stay(self, db: AsyncSession, request) -> int:
        req = _parse(StayBookingCreate, request)
        bind_booking_context(customer_email=req.customer_email)

        if req.check_out_date <= req.check_in_date:
            raise ValidationError(
                "Check-out date must be after check-in date",
                check_in_date=req.check_in_date.isoformat(),
                check_out_date=req.check_out_date.isoformat(),
            )
        nights = (req.check_out_date - req.check_in_date).days

        accommodation = req.accommodation_type
        if req.extended_stay and accommodation is not AccommodationType.DORM:
            logger.info("extended_stay_forced_dorm", requested=accommodation.value)
            accommodation = AccommodationType.DORM

        quote = self.pricing.stay_quote(
            accommodation,
            len(req.people),
            nights,
            includes_meals=req.includes_meals,
            extended_stay=req.extended_stay,
        )

        customer = await get_or_create_customer(db, req.customer_name, req.customer_email, req.customer_phone)
        booking = self._new_booking(customer, BookingType.STAY_ONLY, len(req.people), quote)
        db.add(booking)
        await db.flush()

        db.add(
            StayBooking(
                booking_id=booking.id,
                accommodation_type=accommodation.value,
                check_in_date=req.check_in_date,
                check_out_date=req.check_out_date,
                nights_count=nights,
                includes_meals=req.includes_meals,
                is_extended_stay=quote.details["is_extended_stay"],
                units_needed=quote.requirements.units_needed,
            )
        )
        db.add_all(
            BookingPerson(booking_id=booking.id, person_index=index, name=person.name, age=person.age)
            for index, person in enumerate(req.people)
        )
        await db.flush()

        logger.info(
            "booking_created",
            booking_id=booking.id,
            accommodation=accommodation.value,
            nights=nights,
            people=len(req.people),
            total_amount=str(quote.price.total_amount),
        )
        return booking.id

    def _new_booking(self, customer: Customer, booking_type: BookingType, people_count: int, quote) -> Booking:
        return Booking(
            customer_id=customer.id,
            booking_type=booking_type.value,
            total_people=people_count,
            base_amount=quote.price.base_amount,
            tax_amount=quote.price.tax_amount,
            total_amount=quote.price.total_amount,
            payment_status=PaymentStatus.PENDING.value,
            booking_status=BookingStatus.CONFIRMED.value,
        )

    # Cancellation and payment

    async def cancel(self, booking_id: int) -> Result[list[CapacityClaim]]:
        """
        Cancel a confirmed booking and release exactly what it reserved.

        A second cancel is rejected with code ALREADY_CANCELLED before any
        capacity is touched.
        """
        return await self._run("cancel", lambda db: self._cancel(db, booking_id))

    async def _cancel(self, db: AsyncSession, booking_id: int) -> list[CapacityClaim]:
        result = await db.execute(select(Booking).where(Booking.id == booking_id).with_for_update())
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found", booking_id=booking_id)
        if booking.booking_status == BookingStatus.CANCELLED.value:
            raise ValidationError(
                f"Booking {booking_id} is already cancelled",
                code="ALREADY_CANCELLED",
                booking_id=booking_id,
            )

        released = await capacity_ledger.release_many(db, self._reserved_claims(booking))
        booking.booking_status = BookingStatus.CANCELLED.value
        booking.cancelled_at = datetime.now(timezone.utc)
        await db.flush()

        record_cancellation(BookingType.normalize(booking.booking_type).value)
        logger.info(
            "booking_cancelled",
            booking_id=booking.id,
            released=[(c.session_date.isoformat(), c.slot_id, c.activity_type, c.count) for c in released],
        )
        return released

    @staticmethod
    def _reserved_claims(booking: Booking) -> list[CapacityClaim]:
        """Claims rebuilt from persisted rows, never from the original request."""
        booking_type = BookingType.normalize(booking.booking_type)
        if booking_type is BookingType.ACTIVITY and booking.activity_detail is not None:
            detail = booking.activity_detail
            counts = Counter(p.activity_type or detail.activity_type for p in booking.people)
            return [
                CapacityClaim(detail.slot_id, detail.session_date, activity, count)
                for activity, count in counts.items()
                if activity is not None
            ]
        if booking_type is BookingType.PACKAGE and booking.package_detail is not None:
            return [
                CapacityClaim(session.slot_id, session.session_date, row.activity_type, 1)
                for session in booking.package_detail.sessions
                for row in session.person_activities
            ]
        return []

    async def update_payment_status(
        self, booking_id: int, payment_status: str, payment_reference: Optional[str] = None
    ) -> Result[BookingView]:
        return await self._run(
            "payment_update", lambda db: self._update_payment(db, booking_id, payment_status, payment_reference)
        )

    async def _update_payment(self, db: AsyncSession, booking_id: int, payment_status, payment_reference) -> BookingView:
        try:
            status_value = PaymentStatus(payment_status).value
        except ValueError:
            raise ValidationError(
                f"Unknown payment status {payment_status!r}", payment_status=str(payment_status)
            ) from None

        booking = await self._load(db, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found", booking_id=booking_id)
        booking.payment_status = status_value
        if payment_reference is not None:
            booking.payment_reference = payment_reference
        await db.flush()
        logger.info("payment_status_updated", booking_id=booking_id, payment_status=status_value)
        return self._to_view(booking)

    # Reads

    async def get_by_id(self, booking_id: int) -> Optional[BookingView]:
        """Committed state only; None when the booking does not exist."""
        async with self.session_factory() as session:
            booking = await self._load(session, booking_id)
            return self._to_view(booking) if booking is not None else None

    async def list_bookings(self, filters: Union[BookingFilters, dict, None] = None) -> list[BookingView]:
        """Newest first, filtered for staff."""
        filters = _parse(BookingFilters, filters or {})
        query = select(Booking).join(Customer, Booking.customer_id == Customer.id)

        if filters.booking_type:
            try:
                booking_type = BookingType.normalize(filters.booking_type)
            except ValueError:
                raise ValidationError(
                    f"Unknown booking type {filters.booking_type!r}", booking_type=filters.booking_type
                ) from None
            if booking_type is BookingType.ACTIVITY:
                query = query.where(Booking.booking_type.in_([booking_type.value, LEGACY_ACTIVITY_BOOKING_TYPE]))
            else:
                query = query.where(Booking.booking_type == booking_type.value)
        if filters.payment_status:
            query = query.where(Booking.payment_status == filters.payment_status.value)
        if filters.booking_status:
            query = query.where(Booking.booking_status == filters.booking_status)
        if filters.date_from:
            query = query.where(Booking.created_at >= datetime.combine(filters.date_from, time.min))
        if filters.date_to:
            query = query.where(Booking.created_at < datetime.combine(filters.date_to + timedelta(days=1), time.min))
        if filters.search:
            term = f"%{filters.search}%"
            query = query.where(
                or_(Customer.name.ilike(term), Customer.email.ilike(term), Customer.phone.ilike(term))
            )

        query = query.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(filters.limit)
        async with self.session_factory() as session:
            bookings = (await session.execute(query)).scalars().all()
            return [self._to_view(b) for b in bookings]

    async def preview_package_sessions(
        self, package_type: PackageType, check_in: date, people_count: int
    ) -> dict:
        async with self.session_factory() as session:
            return await package_planner.preview_sessions(session, package_type, check_in, people_count)

    # Staff views

    async def dashboard(
        self, today: date, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> dict:
        """
        Staff overview.

        Counts and completed revenue cover bookings created in
        [date_from, date_to] (default: start of the month up to today).
        Pending payments are counted over all time. Today's sessions are the
        confirmed activity bookings and package sessions held on `today`.
        """
        date_from = date_from or today.replace(day=1)
        date_to = date_to or today
        if date_to < date_from:
            raise ValidationError(
                "date_to must not be before date_from",
                date_from=date_from.isoformat(),
                date_to=date_to.isoformat(),
            )
        created_from = datetime.combine(date_from, time.min)
        created_until = datetime.combine(date_to + timedelta(days=1), time.min)
        in_range = (Booking.created_at >= created_from, Booking.created_at < created_until)

        async with self.session_factory() as session:
            total_bookings = (
                await session.execute(select(func.count(Booking.id)).where(*in_range))
            ).scalar_one()
            total_revenue = (
                await session.execute(
                    select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
                        *in_range, Booking.payment_status == PaymentStatus.COMPLETED.value
                    )
                )
            ).scalar_one()
            pending_payments = (
                await session.execute(
                    select(func.count(Booking.id)).where(Booking.payment_status == PaymentStatus.PENDING.value)
                )
            ).scalar_one()
            todays_sessions = await self._sessions_on(session, today)
            recent = (
                await session.execute(
                    select(Booking).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(RECENT_BOOKINGS)
                )
            ).scalars().all()

            return {
                "statistics": {
                    "total_bookings": total_bookings,
                    "total_revenue": total_revenue,
                    "pending_payments": pending_payments,
                    "todays_sessions": len(todays_sessions),
                },
                "date_from": date_from,
                "date_to": date_to,
                "todays_sessions": todays_sessions,
                "recent_bookings": [self._to_view(b) for b in recent],
            }

    @staticmethod
    async def _sessions_on(db: AsyncSession, on_date: date) -> list[dict]:
        confirmed = Booking.booking_status == BookingStatus.CONFIRMED.value
        activity_rows = await db.execute(
            select(Booking.id, Booking.booking_type, Booking.total_people, Customer.name, Slot.id, Slot.start_time, Slot.end_time)
            .join(Customer, Booking.customer_id == Customer.id)
            .join(ActivityBooking, ActivityBooking.booking_id == Booking.id)
            .join(Slot, Slot.id == ActivityBooking.slot_id)
            .where(ActivityBooking.session_date == on_date, confirmed)
        )
        package_rows = await db.execute(
            select(Booking.id, Booking.booking_type, Booking.total_people, Customer.name, Slot.id, Slot.start_time, Slot.end_time)
            .join(Customer, Booking.customer_id == Customer.id)
            .join(PackageBooking, PackageBooking.booking_id == Booking.id)
            .join(PackageSession, PackageSession.package_booking_id == PackageBooking.id)
            .join(Slot, Slot.id == PackageSession.slot_id)
            .where(PackageSession.session_date == on_date, confirmed)
        )
        sessions = [
            {
                "booking_id": booking_id,
                "booking_type": BookingType.normalize(booking_type).value,
                "total_people": total_people,
                "customer_name": customer_name,
                "session_date": on_date,
                "slot_id": slot_id,
                "start_time": start_time,
                "end_time": end_time,
            }
            for booking_id, booking_type, total_people, customer_name, slot_id, start_time, end_time in [
                *activity_rows.all(),
                *package_rows.all(),
            ]
        ]
        sessions.sort(key=lambda s: (s["start_time"], s["booking_id"]))
        return sessions

    async def customer_details(self, customer_id: int) -> Optional[dict]:
        """Customer, full booking history (newest first) and spend; None when unknown."""
        async with self.session_factory() as session:
            customer = await session.get(Customer, customer_id)
            if customer is None:
                return None
            history = (
                await session.execute(
                    select(Booking)
                    .where(Booking.customer_id == customer_id)
                    .order_by(Booking.created_at.desc(), Booking.id.desc())
                )
            ).scalars().all()
            return {
                "customer": {
                    "id": customer.id,
                    "name": customer.name,
                    "email": customer.email,
                    "phone": customer.phone,
                    "created_at": customer.created_at,
                },
                "booking_history": [self._to_view(b) for b in history],
                "statistics": await customer_stats(session, customer_id),
            }

    async def _load(self, db: AsyncSession, booking_id: int) -> Optional[Booking]:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        return result.scalar_one_or_none()

    # Views

    def booking_reference(self, booking: Booking) -> str:
        """<prefix>-<ACT|PKG|STY code>-<id>-<yymmdd of first service date>"""
        booking_type = BookingType.normalize(booking.booking_type)
        service_date = booking.created_at.date() if booking.created_at else date.today()
        code = "STY"
        if booking_type is BookingType.ACTIVITY:
            detail = booking.activity_detail
            first = (detail.activity_type if detail else None) or next(
                (p.activity_type for p in booking.people if p.activity_type), "act"
            )
            code = first[:3].upper()
            if detail is not None:
                service_date = detail.session_date
        elif booking_type is BookingType.PACKAGE:
            code = "PKG"
            if booking.package_detail is not None:
                service_date = booking.package_detail.check_in_date
        elif booking.stay_detail is not None:
            service_date = booking.stay_detail.check_in_date
        return f"{self.settings.BOOKING_REFERENCE_PREFIX}-{code}-{booking.id}-{service_date:%y%m%d}"

    def _to_view(self, booking: Booking) -> BookingView:
        people_by_id = {p.id: p for p in booking.people}
        view = {
            "id": booking.id,
            "booking_reference": self.booking_reference(booking),
            "booking_type": BookingType.normalize(booking.booking_type).value,
            "booking_status": booking.booking_status,
            "payment_status": booking.payment_status,
            "payment_reference": booking.payment_reference,
            "total_people": booking.total_people,
            "base_amount": booking.base_amount,
            "tax_amount": booking.tax_amount,
            "total_amount": booking.total_amount,
            "customer": {
                "id": booking.customer.id,
                "name": booking.customer.name,
                "email": booking.customer.email,
                "phone": booking.customer.phone,
            },
            "people": [
                {"person_index": p.person_index, "name": p.name, "age": p.age, "activity_type": p.activity_type}
                for p in booking.people
            ],
            "created_at": booking.created_at,
            "cancelled_at": booking.cancelled_at,
        }

        if booking.activity_detail is not None:
            detail = booking.activity_detail
            view["activity"] = {
                "slot_id": detail.slot_id,
                "session_date": detail.session_date,
                "start_time": detail.slot.start_time,
                "end_time": detail.slot.end_time,
                "activity_type": detail.activity_type,
                "activity_counts": dict(
                    Counter(p.activity_type or detail.activity_type for p in booking.people)
                ),
            }

        if booking.package_detail is not None:
            package = booking.package_detail
            package_type = PackageType(package.package_type)
            view["package"] = {
                "package_type": package.package_type,
                "package_name": PACKAGE_DEFINITIONS[package_type].name,
                "accommodation_type": package.accommodation_type,
                "check_in_date": package.check_in_date,
                "check_out_date": package.check_out_date,
                "nights_count": PACKAGE_DEFINITIONS[package_type].nights,
                "units_needed": package.units_needed,
                "sessions": [
                    {
                        "session_number": s.session_number,
                        "session_date": s.session_date,
                        "slot_id": s.slot_id,
                        "start_time": s.slot.start_time,
                        "end_time": s.slot.end_time,
                        "auto_allocated": s.auto_allocated,
                        "activity_counts": dict(Counter(row.activity_type for row in s.person_activities)),
                        "people_activities": [
                            {
                                "person_index": people_by_id[row.booking_person_id].person_index,
                                "name": people_by_id[row.booking_person_id].name,
                                "activity_type": row.activity_type,
                            }
                            for row in sorted(
                                s.person_activities,
                                key=lambda r: people_by_id[r.booking_person_id].person_index,
                            )
                        ],
                    }
                    for s in package.sessions
                ],
            }

        if booking.stay_detail is not None:
            stay = booking.stay_detail
            view["stay"] = {
                "accommodation_type": stay.accommodation_type,
                "check_in_date": stay.check_in_date,
                "check_out_date": stay.check_out_date,
                "nights_count": stay.nights_count,
                "includes_meals": stay.includes_meals,
                "is_extended_stay": stay.is_extended_stay,
                "units_needed": stay.units_needed,
            }

        return BookingView.model_validate(view)
