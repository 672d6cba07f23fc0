# Overview: Per-store document numbering (invoice numbers).

from __future__ import annotations

from sqlalchemy import update

from ..errors import BadRequest
from ..extensions import db
from ..models import DocumentSequence


DOCUMENT_TYPE_INVOICE = "INVOICE"


def next_document_number(
    *,
    store_id: int,
    document_type: str,
    prefix: str,
    pad: int = 0,
) -> str:
    """
    Atomically allocate the next document number for a store/type.

    The increment is a single UPDATE, so two concurrent callers can never
    be handed the same number. Must run inside the caller's transaction.
    """
    if not store_id:
        raise BadRequest("store_id is required")
    if not document_type:
        raise BadRequest("document_type is required")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.store_id == store_id,
            DocumentSequence.document_type == document_type,
        )
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(store_id=store_id, document_type=document_type)
            .scalar()
        )
        next_num = current - 1
    else:
        db.session.add(DocumentSequence(store_id=store_id, document_type=document_type, next_number=2))
        db.session.flush()
        next_num = 1

    number = str(next_num).zfill(pad) if pad else str(next_num)
    return f"{prefix}-{number}"
