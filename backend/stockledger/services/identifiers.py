# Overview: Identifier and document-number allocation for inventory entities.

from __future__ import annotations

import uuid

from ..models import DocumentType

# Entity id prefixes; the suffix is a random UUID so ids created within the
# same clock tick never collide.
ID_PREFIXES = {
    "product": "prod",
    "warehouse": "wh",
    "receipt": "rec",
    "delivery": "del",
    "transfer": "trans",
    "adjustment": "adj",
    "movement": "mov",
}

DOCUMENT_NUMBER_PREFIXES = {
    DocumentType.RECEIPT: "REC",
    DocumentType.DELIVERY: "DEL",
    DocumentType.INTERNAL: "INT",
    DocumentType.ADJUSTMENT: "ADJ",
}


def new_id(entity: str) -> str:
    prefix = ID_PREFIXES[entity]
    return f"{prefix}-{uuid.uuid4().hex}"


def next_document_number(
    *,
    document_type: DocumentType,
    existing_numbers: set[str],
    pad: int = 3,
) -> str:
    """
    Allocate the next free document number for a document type.

    Numbers look like REC-001, DEL-014. Caller-supplied numbers may already
    occupy a slot, so the counter skips anything in existing_numbers.
    """
    prefix = DOCUMENT_NUMBER_PREFIXES[document_type]
    counter = len(existing_numbers) + 1
    while True:
        candidate = f"{prefix}-{str(counter).zfill(pad)}"
        if candidate not in existing_numbers:
            return candidate
        counter += 1
