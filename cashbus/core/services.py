"""Core services for domain audit logging."""
import logging

from cashbus.middleware import get_request_id

from .models import DomainAuditEvent

logger = logging.getLogger(__name__)


def create_audit_event(
    action, entity_type, entity_id=None, user=None, metadata=None, request_id=None
):
    """Create a domain audit event."""
    if request_id is None:
        request_id = get_request_id()
    audit_event = DomainAuditEvent.objects.create(
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        user=user,
        metadata=metadata or {},
        request_id=request_id,
    )
    logger.info(f"Audit event created: {action} on {entity_type}:{entity_id}")
    return audit_event


def audit_claim_resolved(claim, resolution, user=None):
    """Create audit event for an admin or webhook resolution."""
    return create_audit_event(
        action="claim_resolved",
        entity_type="Claim",
        entity_id=claim.reference,
        user=user,
        metadata={"resolution": resolution, "operator_id": claim.operator_id},
    )
