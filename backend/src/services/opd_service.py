"""
Service for OPD front-desk operations.

Registers patients, records consultation visits and places lab test orders.
Test orders snapshot line prices and compute their totals once at creation;
orders with a referring doctor get their commission calculated right away.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from auth.scope import BranchScope, ALL_BRANCHES
from core.exceptions import NotFoundError, InvalidStateError, ForbiddenError
from models import Doctor, LabTest, Patient, PatientVisit, TestOrder, TestOrderItem
from models.enums import TestStatus, VisitType
from services.commission_calculator import CommissionLine, calculate_order_commission, round_currency, to_decimal
from services.commission_service import CommissionService
from services.sequence_service import SequenceService
from utils.datetime_utils import business_now
from utils.qr_utils import build_order_qr_payload, parse_order_qr_payload

logger = logging.getLogger(__name__)


class OpdService:
    """Service for patients, visits and test orders."""

    @staticmethod
    def register_patient(
        db: Session,
        branch_code: str,
        name: str,
        age: Optional[int] = None,
        gender: Optional[str] = None,
        contact: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
        registered_by: Optional[int] = None
    ) -> Patient:
        """
        Register a new patient at a branch.

        Returns:
            The new patient with its branch-qualified code (flushed, not committed)
        """
        if not name or not name.strip():
            raise ValueError("Patient name is required")

        patient = Patient(
            patient_code=SequenceService.generate_patient_code(db, branch_code),
            name=name.strip(),
            age=age,
            gender=gender,
            contact=contact,
            email=email,
            address=address,
            branch_code=branch_code,
            registered_by=registered_by,
            is_active=True,
        )
        db.add(patient)
        db.flush()
        logger.info(f"👤 Registered patient {patient.patient_code} at {branch_code}")
        return patient

    @staticmethod
    def get_patient(db: Session, patient_id: int) -> Patient:
        patient = db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    @staticmethod
    def _patient_at_branch(db: Session, patient_id: int, branch_code: str) -> Patient:
        """Patients are only visible to the branch that registered them."""
        patient = OpdService.get_patient(db, patient_id)
        if patient.branch_code != branch_code:
            raise NotFoundError("Patient not found")
        return patient

    @staticmethod
    def create_visit(
        db: Session,
        branch_code: str,
        patient_id: int,
        doctor_id: int,
        payment_mode: str,
        payment_status: str,
        visit_type: str = VisitType.CONSULTATION.value,
        consultation_fee: Optional[Decimal] = None,
        symptoms: Optional[str] = None,
        next_visit_date: Optional[date] = None,
        created_by: Optional[int] = None
    ) -> PatientVisit:
        """
        Record an OPD visit.

        The consultation fee defaults to the doctor's fee.

        Raises:
            NotFoundError: If the patient or doctor does not exist, or the
                patient is registered at another branch
            InvalidStateError: If the doctor does not consult at this branch
        """
        patient = OpdService._patient_at_branch(db, patient_id, branch_code)

        doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")
        if not doctor.is_available_at(branch_code):
            raise InvalidStateError("Doctor is not available at this branch")

        fee = doctor.consultation_fee if consultation_fee is None else round_currency(consultation_fee)

        visit = PatientVisit(
            visit_code=SequenceService.generate_visit_code(db, branch_code),
            patient_id=patient.id,
            doctor_id=doctor.id,
            branch_code=branch_code,
            visit_date=business_now(),
            consultation_fee=fee,
            payment_mode=payment_mode,
            payment_status=payment_status,
            visit_type=visit_type,
            symptoms=symptoms,
            next_visit_date=next_visit_date,
            created_by=created_by,
        )
        db.add(visit)
        db.flush()
        logger.info(f"🩺 Visit {visit.visit_code} recorded for {patient.patient_code} with {doctor.doctor_code}")
        return visit

    @staticmethod
    def create_test_order(
        db: Session,
        branch_code: str,
        patient_id: int,
        tests: List[Dict[str, Any]],
        payment_mode: str,
        payment_status: str,
        visit_id: Optional[int] = None,
        referring_doctor_id: Optional[int] = None,
        created_by: Optional[int] = None
    ) -> TestOrder:
        """
        Place a lab test order.

        Args:
            tests: [{"test_id": int, "price": optional override}]

        Returns:
            The new order (flushed, not committed). Its commission, if any,
            is created in the same transaction.

        Raises:
            NotFoundError: If the patient, visit, referring doctor or any
                test is missing (inactive tests count as missing); patients and
                visits of other branches count as missing
            InvalidStateError: If the visit belongs to another patient
        """
        if not tests:
            raise ValueError("At least one test is required")

        patient = OpdService._patient_at_branch(db, patient_id, branch_code)

        if visit_id is not None:
            visit = db.query(PatientVisit).filter(PatientVisit.id == visit_id).first()
            if not visit or visit.branch_code != branch_code:
                raise NotFoundError("Visit not found")
            if visit.patient_id != patient.id:
                raise InvalidStateError("Visit does not belong to this patient")

        if referring_doctor_id is not None:
            doctor = db.query(Doctor).filter(Doctor.id == referring_doctor_id).first()
            if not doctor:
                raise NotFoundError("Referring doctor not found")

        test_ids = {entry['test_id'] for entry in tests}
        catalogue = {
            t.id: t for t in db.query(LabTest).filter(LabTest.id.in_(test_ids), LabTest.is_active == True).all()
        }
        if len(catalogue) != len(test_ids):
            raise NotFoundError("One or more tests not found or inactive")

        items: List[TestOrderItem] = []
        lines: List[CommissionLine] = []
        for entry in tests:
            lab_test = catalogue[entry['test_id']]
            price = lab_test.price if entry.get('price') is None else round_currency(entry['price'])
            items.append(TestOrderItem(
                lab_test_id=lab_test.id,
                test_name=lab_test.test_name,
                price=price,
                status=TestStatus.PENDING.value,
            ))
            lines.append(CommissionLine(price=to_decimal(price), rate=to_decimal(lab_test.commission_rate)))

        total_amount = round_currency(sum((item.price for item in items), Decimal('0')))
        commission_amount = calculate_order_commission(lines).total_commission

        now = business_now()
        order_code = SequenceService.generate_order_code(db, branch_code)
        order = TestOrder(
            order_code=order_code,
            patient_id=patient.id,
            visit_id=visit_id,
            referring_doctor_id=referring_doctor_id,
            total_amount=total_amount,
            commission_amount=commission_amount,
            payment_mode=payment_mode,
            payment_status=payment_status,
            qr_code=build_order_qr_payload(order_code, patient.patient_code, now),
            lab_code=f"{branch_code}-LAB001",
            branch_code=branch_code,
            created_by=created_by,
            created_at=now,
            items=items,
        )
        db.add(order)
        db.flush()
        logger.info(f"🧪 Test order {order.order_code} placed: {len(items)} tests, total {total_amount}")

        if referring_doctor_id is not None:
            try:
                CommissionService.calculate_commission(db, order.id)
            except (NotFoundError, InvalidStateError) as e:
                # The order stands without a commission; it can be calculated later
                logger.warning(f"Commission not calculated for order {order.order_code}: {e}")

        return order

    @staticmethod
    def get_test_order(db: Session, order_id: int, scope: BranchScope = ALL_BRANCHES) -> TestOrder:
        """
        Raises:
            NotFoundError: If the order does not exist
            ForbiddenError: If the order belongs to a branch outside the scope
        """
        order = db.query(TestOrder).options(joinedload(TestOrder.items)).filter(TestOrder.id == order_id).first()
        if not order:
            raise NotFoundError("Test order not found")
        if not scope.allows(order.branch_code):
            raise ForbiddenError("Access denied")
        return order

    @staticmethod
    def find_order_by_qr(db: Session, payload: str, scope: BranchScope = ALL_BRANCHES) -> TestOrder:
        """Resolve a scanned sample label to its order."""
        parsed = parse_order_qr_payload(payload)
        if not parsed:
            raise ValueError("Invalid QR code")
        order = db.query(TestOrder).filter(TestOrder.order_code == parsed['order_code']).first()
        if not order:
            raise NotFoundError("Test order not found")
        if not scope.allows(order.branch_code):
            raise ForbiddenError("Access denied")
        return order

    @staticmethod
    def update_test_status(
        db: Session,
        order_id: int,
        item_id: int,
        status: str,
        scope: BranchScope = ALL_BRANCHES
    ) -> TestOrderItem:
        """
        Move an ordered test along its fulfillment status.

        COLLECTED and COMPLETED stamp collection_date and completion_date.
        """
        order = OpdService.get_test_order(db, order_id, scope)
        item = next((i for i in order.items if i.id == item_id), None)
        if item is None:
            raise NotFoundError("Test not found in this order")

        now = business_now()
        item.status = status
        if status == TestStatus.COLLECTED.value and item.collection_date is None:
            item.collection_date = now
        if status == TestStatus.COMPLETED.value:
            if item.collection_date is None:
                item.collection_date = now
            item.completion_date = now
        db.flush()
        return item
