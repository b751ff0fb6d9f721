from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging

from ..application.policies import Caller, Role
from ..application.services.payments_service import PaymentsService
from ..schemas.payments.payment import PaymentResponse, PaymentStatsResponse, PaymentUpdate, ReceiptResponse
from .deps import get_current_caller, get_payments_service, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.get("", response_model=List[PaymentResponse])
def list_my_payments(
    caller: Caller = Depends(require_role(Role.PATIENT)),
    payments: PaymentsService = Depends(get_payments_service),
):
    return [PaymentResponse.model_validate(p) for p in payments.list_for_patient(caller)]


# admin routes are declared before "/{payment_id}"
@router.get("/admin/stats", response_model=PaymentStatsResponse)
def payment_stats(
    caller: Caller = Depends(require_role(Role.ADMIN)),
    payments: PaymentsService = Depends(get_payments_service),
):
    return PaymentStatsResponse.model_validate(payments.stats(caller))


@router.get("/admin", response_model=List[PaymentResponse])
def list_all_payments(
    status: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(require_role(Role.ADMIN)),
    payments: PaymentsService = Depends(get_payments_service),
):
    rows = payments.list_all(caller, status=status, date_from=date_from, date_to=date_to, patient_id=patient_id)
    return [PaymentResponse.model_validate(p) for p in rows]


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: str,
    caller: Caller = Depends(get_current_caller),
    payments: PaymentsService = Depends(get_payments_service),
):
    return PaymentResponse.model_validate(payments.get_payment(caller, payment_id))


@router.put("/{payment_id}/pay", response_model=PaymentResponse)
def pay_bill(
    payment_id: str,
    caller: Caller = Depends(require_role(Role.PATIENT)),
    payments: PaymentsService = Depends(get_payments_service),
):
    return PaymentResponse.model_validate(payments.pay(caller, payment_id))


@router.put("/{payment_id}", response_model=PaymentResponse)
def update_payment(
    payment_id: str,
    update: PaymentUpdate,
    caller: Caller = Depends(require_role(Role.ADMIN)),
    payments: PaymentsService = Depends(get_payments_service),
):
    payment = payments.update_payment(
        caller, payment_id, status=update.status, payment_method=update.payment_method, notes=update.notes
    )
    return PaymentResponse.model_validate(payment)


@router.get("/{payment_id}/receipt", response_model=ReceiptResponse)
def download_receipt(
    payment_id: str,
    caller: Caller = Depends(get_current_caller),
    payments: PaymentsService = Depends(get_payments_service),
):
    receipt = ReceiptResponse(**payments.receipt(caller, payment_id))
    return JSONResponse(
        content=jsonable_encoder(receipt),
        headers={"Content-Disposition": f'attachment; filename="receipt-{receipt.invoice_number}.json"'},
    )
