"""
Celery tasks for CashBus.

The escalation sweep runs daily from Celery beat; lawsuit assembly is handed
off as its own task so its failures stay out of the sweep.
"""

from typing import Any, Dict
from celery import shared_task
from django.conf import settings

from cashbus.escalation.services import HandoffResult
from cashbus.logging_utils import add_log_context, get_logger

logger = get_logger(__name__)


@shared_task(name="cashbus.tasks.run_escalations")
def run_escalations_task() -> Dict[str, Any]:
    """
    Run the escalation sweep once.

    Returns:
        dict: Run summary with per-claim outcomes
    """
    from cashbus.escalation.services import run_escalations

    with add_log_context(task_name="run_escalations"):
        summary = run_escalations()
    return summary.as_dict()


@shared_task(name="cashbus.tasks.assemble_lawsuit_document")
def assemble_lawsuit_document_task(claim_id: int) -> Dict[str, Any]:
    """
    Assemble and store the lawsuit document for a claim.

    Args:
        claim_id: The claim that finished its escalation ladder

    Returns:
        dict: Stored document filename
    """
    from cashbus.lawsuits.services import assemble_lawsuit_for_claim
    from cashbus.models import Claim

    logger.info(f"Starting lawsuit assembly for claim {claim_id}")

    try:
        claim = Claim.objects.select_related("profile").get(id=claim_id)
        document = assemble_lawsuit_for_claim(claim)
        return {
            "claim_id": claim_id,
            "filename": document.filename,
            "status": "success",
        }
    except Exception as e:
        logger.error(f"Error assembling lawsuit for claim {claim_id}: {str(e)}")
        raise


def enqueue_or_run_sync(task: Any, *args: Any, **kwargs: Any) -> Any:
    """
    Either enqueue a task to Celery or run it synchronously.

    Lets the system work with or without a Celery worker.
    """
    if settings.CELERY_ENABLED:
        return task.delay(*args, **kwargs)
    else:
        return task(*args, **kwargs)


def dispatch_lawsuit_assembly(claim_id: int) -> HandoffResult:
    """Hand a completed claim to the lawsuit assembler and report the outcome."""
    try:
        enqueue_or_run_sync(assemble_lawsuit_document_task, claim_id)
    except Exception as e:
        logger.exception(f"Lawsuit assembly hand-off failed for claim {claim_id}")
        return HandoffResult(attempted=True, succeeded=False, error=str(e))
    return HandoffResult(attempted=True, succeeded=True)
