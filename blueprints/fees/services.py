# blueprints/fees/services.py
from __future__ import annotations
import calendar
import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from flask import current_app

from extensions import db
from models import ZERO, ClassFee, PaymentStatus, SchoolClass, Student
from blueprints.core.audit import log_action
from blueprints.core.errors import BusinessRuleError, Conflict, NotFound
from blueprints.core.http import money

log = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass
class MonthCharge:
    month: str
    year: int
    amount: Decimal
    reason: str


@dataclass
class FeeCalculation:
    total_due: Decimal
    admission_fee: Decimal
    total_monthly_fees: Decimal
    monthly_breakdown: list[MonthCharge] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["total_due"] = money(self.total_due)
        d["admission_fee"] = money(self.admission_fee)
        d["total_monthly_fees"] = money(self.total_monthly_fees)
        for row in d["monthly_breakdown"]:
            row["amount"] = money(row["amount"])
        return d


def _q(val) -> Decimal:
    return Decimal(val or 0).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_retroactive_fees(
    enrollment_date: date,
    monthly_fee: Decimal,
    admission_fee: Decimal,
    admission_fee_paid: bool = False,
    today: Optional[date] = None,
    full_until_day: int = 10,
    half_until_day: int = 20,
) -> FeeCalculation:
    """
    Dues from the enrollment month up to the current month (inclusive).

    The enrollment month is charged in full when the student joined on day
    <= full_until_day, half when <= half_until_day and not at all later on.
    Every following month is charged in full. Admission fee is added unless
    already paid.
    """
    today = today or date.today()
    monthly_fee = _q(monthly_fee)
    admission = ZERO if admission_fee_paid else _q(admission_fee)

    rows: list[MonthCharge] = []
    y, m = enrollment_date.year, enrollment_date.month
    while (y, m) <= (today.year, today.month):
        if (y, m) == (enrollment_date.year, enrollment_date.month):
            day = enrollment_date.day
            if day <= full_until_day:
                amount, reason = monthly_fee, f"full month, enrolled on day {day}"
            elif day <= half_until_day:
                amount, reason = _q(monthly_fee / 2), f"half month, enrolled on day {day}"
            else:
                amount, reason = ZERO, f"no charge, enrolled on day {day}"
        else:
            amount, reason = monthly_fee, "full month"
        rows.append(MonthCharge(month=calendar.month_name[m], year=y, amount=amount, reason=reason))
        m += 1
        if m > 12:
            y, m = y + 1, 1

    monthly_total = sum((r.amount for r in rows), ZERO)
    return FeeCalculation(
        total_due=admission + monthly_total,
        admission_fee=admission,
        total_monthly_fees=monthly_total,
        monthly_breakdown=rows,
    )


def refresh_payment_status(s: Student) -> None:
    s.payment_status = (PaymentStatus.PENDING.value if Decimal(s.pending_amount or 0) > 0
                        else PaymentStatus.PAID.value)


# ---------- class fee structures ----------
def class_fee_out(cf: ClassFee) -> dict:
    return {
        "id": cf.id,
        "class_id": cf.class_id,
        "class_name": cf.school_class.name if cf.school_class else None,
        "course_type": cf.course_type,
        "admission_fee": money(cf.admission_fee),
        "monthly_fee": money(cf.monthly_fee),
        "yearly_fee": money(cf.yearly_fee) if cf.yearly_fee is not None else None,
        "is_active": cf.is_active,
    }


def get_class_fee(class_id: int, course_type: str) -> Optional[ClassFee]:
    return ClassFee.query.filter_by(class_id=class_id, course_type=course_type, is_active=True).first()


def create_class_fee(data) -> ClassFee:
    if not db.session.get(SchoolClass, data.class_id):
        raise NotFound("class_not_found")
    if ClassFee.query.filter_by(class_id=data.class_id, course_type=data.course_type.value).first():
        raise Conflict("fee_structure_exists")
    cf = ClassFee(
        class_id=data.class_id, course_type=data.course_type.value,
        admission_fee=data.admission_fee, monthly_fee=data.monthly_fee,
        yearly_fee=data.yearly_fee, is_active=data.is_active,
    )
    db.session.add(cf)
    db.session.flush()
    log_action("create", "class_fee", cf.id, {"class_id": cf.class_id, "course_type": cf.course_type})
    db.session.commit()
    return cf


def update_class_fee(fee_id: int, data) -> ClassFee:
    cf = db.session.get(ClassFee, fee_id)
    if not cf:
        raise NotFound("fee_structure_not_found")
    for key, val in data.model_dump(exclude_unset=True).items():
        if val is not None:
            setattr(cf, key, val)
    db.session.commit()
    return cf


def delete_class_fee(fee_id: int) -> None:
    cf = db.session.get(ClassFee, fee_id)
    if not cf:
        raise NotFound("fee_structure_not_found")
    log_action("delete", "class_fee", cf.id)
    db.session.delete(cf)
    db.session.commit()


# ---------- student dues ----------
def _thresholds() -> tuple[int, int]:
    return (int(current_app.config.get("FEE_FULL_MONTH_UNTIL_DAY", 10)),
            int(current_app.config.get("FEE_HALF_MONTH_UNTIL_DAY", 20)))


def apply_fees(s: Student, today: Optional[date] = None) -> Optional[FeeCalculation]:
    """Writes computed dues on the student; returns None without a fee structure."""
    cf = get_class_fee(s.class_id, s.course_type)
    if not cf or not s.enrollment_date:
        return None
    full_day, half_day = _thresholds()
    calc = calculate_retroactive_fees(
        s.enrollment_date, cf.monthly_fee, cf.admission_fee, s.admission_fee_paid,
        today=today, full_until_day=full_day, half_until_day=half_day,
    )
    s.total_fee_amount = calc.total_due
    s.pending_amount = calc.total_due
    s.paid_amount = ZERO
    refresh_payment_status(s)
    return calc


def recalculate_student_fees(s: Student, today: Optional[date] = None) -> FeeCalculation:
    if not s.enrollment_date:
        raise BusinessRuleError("no_enrollment_date")
    calc = apply_fees(s, today=today)
    if calc is None:
        raise BusinessRuleError("no_fee_structure")
    log_action("recalculate_fees", "student", s.id, {"total_due": str(calc.total_due)})
    db.session.commit()
    log.info("fees recalculated student=%s total=%s", s.id, calc.total_due)
    return calc


# ---------- monthly accrual ----------
def _monthly_plan() -> tuple[list[tuple[Student, Decimal]], list[Student]]:
    planned: list[tuple[Student, Decimal]] = []
    skipped: list[Student] = []
    fees = {(cf.class_id, cf.course_type): cf for cf in ClassFee.query.filter_by(is_active=True).all()}
    for s in Student.query.filter_by(is_active=True).order_by(Student.id.asc()).all():
        cf = fees.get((s.class_id, s.course_type))
        if not cf or _q(cf.monthly_fee) <= 0:
            skipped.append(s)
            continue
        planned.append((s, _q(cf.monthly_fee)))
    return planned, skipped


def monthly_fees_preview() -> dict:
    planned, skipped = _monthly_plan()
    return {
        "students_to_update": len(planned),
        "total_fees_to_add": money(sum((fee for _, fee in planned), ZERO)),
        "skipped": len(skipped),
        "student_details": [{
            "student_id": s.id,
            "student_code": s.student_code,
            "name": s.name,
            "current_pending": money(s.pending_amount),
            "monthly_fee": money(fee),
            "new_pending": money(_q(s.pending_amount) + fee),
        } for s, fee in planned],
    }


def run_monthly_fees() -> dict:
    planned, skipped = _monthly_plan()
    for s in skipped:
        log.warning("monthly fees: no fee structure for student=%s class=%s course=%s",
                    s.id, s.class_id, s.course_type)
    total = ZERO
    for s, fee in planned:
        s.pending_amount = _q(s.pending_amount) + fee
        s.total_fee_amount = _q(s.total_fee_amount) + fee
        refresh_payment_status(s)
        total += fee
    log_action("monthly_fees", "student", None, {"students": len(planned), "total": str(total)})
    db.session.commit()
    log.info("monthly fees added: students=%s total=%s", len(planned), total)
    return {"students_updated": len(planned), "total_fees_added": money(total), "skipped": len(skipped)}
