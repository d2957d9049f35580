"""
Visionary Workflow Engine (`workflow_engine.py`)

===============================================================================
PURPOSE:
===============================================================================
The rules of the creative pipeline, and nothing else. No Streamlit, no
SQLite. Every "plan_*" function takes the current `Variant` (plus whatever the
user typed) and either:

  - returns a dict of partial document fields to write (camelCase keys, the
    exact shape `workflow_service.update_variant` stores), or
  - raises `WorkflowValidationError` BEFORE anything is written.

An empty dict means "nothing to change" (e.g. re-selecting the same status).

===============================================================================
THE PIPELINE:
===============================================================================
    In Progress -> Ready to edit -> Completed -> Ready to Launch -> Live
                        |               |             |
                        +--- Rejected <-+-------------+
                                                   (Canceled / In Review
                                                    live in the launch stage)

- Strategist writes the brief and the script link, then hands over with
  "Ready to edit" (stamps reviewDate once).
- Editor accepts into production (stamps editDate), uploads a video and marks
  "Completed" (stamps compDate), or rejects the brief back to the Strategist.
- VA approves ("Ready to Launch"), moves it through the launch stage
  ("Live" stamps launchDate), or rejects back to the Strategist or the Editor.
- Review only flips the secondary `reviewStatus` on Live ads.

A backward move always clears the dates of every stage at or after the
target stage. `rejectionHistory` is append-only.

===============================================================================
QUICK NAVIGATION:
===============================================================================
[S1] Statuses, roles, option sets
[S2] Derived state (effective status, feedback filters)
[S3] Guards (delete / edit permissions)
[S4] Transition planners
[S5] Creation & field edits
"""

from typing import List, Optional

from models import RejectionEntry, Variant


class WorkflowValidationError(ValueError):
    """A user action the pipeline rules refuse. Nothing has been written."""


# --- [S1] STATUSES, ROLES, OPTION SETS ---

IN_PROGRESS = "In Progress"
READY_TO_EDIT = "Ready to edit"
COMPLETED = "Completed"
REJECTED = "Rejected"
READY_TO_LAUNCH = "Ready to Launch"
IN_REVIEW = "In Review"
LIVE = "Live"
CANCELED = "Canceled"

LAUNCH_STAGE = (READY_TO_LAUNCH, IN_REVIEW, LIVE, CANCELED)

# Statuses that have left the Strategist's authority.
STRATEGIST_LOCKED = (COMPLETED, IN_REVIEW, LIVE, CANCELED)

STRATEGIST = "Strategist"
EDITOR = "Editor"
VA = "VA"

ROLE_TRANSITIONS = {
    STRATEGIST: {IN_PROGRESS, READY_TO_EDIT},
    EDITOR: {READY_TO_EDIT, COMPLETED},
    VA: set(LAUNCH_STAGE),
}

# Which sources may send a variant to which destinations.
REJECTION_ROUTES = {
    EDITOR: (STRATEGIST,),
    VA: (STRATEGIST, EDITOR),
}

REJECTABLE_FROM = {
    EDITOR: (READY_TO_EDIT,),
    VA: (COMPLETED, READY_TO_LAUNCH),
}

RUNNING = "Running"
OFF = "Off"
NEEDS_SPEND = "Needs Spend"
REVIEW_STATUSES = (RUNNING, OFF, NEEDS_SPEND)

# Every date field, in pipeline order.
STAGE_DATES = ("reviewDate", "editDate", "compDate", "launchDate")


def _clear(*fields: str) -> dict:
    return {f: "" for f in fields}


# --- [S2] DERIVED STATE ---

def last_rejection(variant: Variant) -> Optional[RejectionEntry]:
    if not variant.rejection_history:
        return None
    return variant.rejection_history[-1]


def effective_status(variant: Variant) -> str:
    """
    What the variant *means* right now, for display and for deciding who may
    act on it. A stored "Rejected" is read through its latest rejection:
    sent to the Strategist it is back "In Progress", sent to the Editor it is
    back "Ready to edit". The stored status is never rewritten by this.
    """
    if variant.status != REJECTED:
        return variant.status
    last = last_rejection(variant)
    if last is None:
        return REJECTED
    if last.destination == STRATEGIST:
        return IN_PROGRESS
    if last.destination == EDITOR:
        return READY_TO_EDIT
    return REJECTED


def is_scripting(variant: Variant) -> bool:
    """True when the Editor sees this row as back with the Strategist."""
    if variant.status == IN_PROGRESS:
        return any(h.source == VA and h.destination == STRATEGIST for h in variant.rejection_history)
    if variant.status == REJECTED:
        last = last_rejection(variant)
        return last is not None and last.destination == STRATEGIST
    return False


def strategist_feedback(variant: Variant) -> List[RejectionEntry]:
    """Rejections the Strategist has to read (from the Editor, or routed to the Strategist)."""
    return [h for h in variant.rejection_history if h.source == EDITOR or h.destination == STRATEGIST]


def editor_feedback(variant: Variant) -> List[RejectionEntry]:
    """Rejections VA routed back to the Editor."""
    return [h for h in variant.rejection_history if h.source == VA and h.destination == EDITOR]


def in_approval_queue(variant: Variant) -> bool:
    return variant.status == READY_TO_EDIT and not variant.edit_date


# --- [S3] GUARDS ---

def can_delete_variant(variant: Variant) -> bool:
    """
    Strategist removal mode: only pristine "In Progress" rows that carry no
    reviewer feedback can be thrown away.
    """
    return variant.status == IN_PROGRESS and not strategist_feedback(variant)


def can_delete_strategy(variants: List[Variant]) -> bool:
    return all(can_delete_variant(v) for v in variants)


def can_strategist_edit(variant: Variant) -> bool:
    return variant.status not in STRATEGIST_LOCKED


def require_strategist_edit(variant: Variant) -> None:
    if not can_strategist_edit(variant):
        raise WorkflowValidationError(
            "Completed or Validated variants cannot be edited by the Creative Strategist."
        )


def _require_script(script_link: Optional[str], message: str) -> None:
    if not script_link or not script_link.strip():
        raise WorkflowValidationError(message)


# --- [S4] TRANSITION PLANNERS ---

def plan_status_change(variant: Variant, next_status: str, role: str, today: str) -> dict:
    """
    A status picked from a role's status dropdown.
    Returns the partial update, {} for a no-op, or raises.
    """
    if role not in ROLE_TRANSITIONS:
        raise WorkflowValidationError(f"Unknown role: {role}")

    if role == EDITOR and next_status == REJECTED:
        if variant.status == REJECTED:
            return {}
        raise WorkflowValidationError('Rows can only be set to "Rejected" via the rejection workflow.')

    if next_status not in ROLE_TRANSITIONS[role]:
        raise WorkflowValidationError(f'The {role} cannot set a variant to "{next_status}".')

    if role == STRATEGIST:
        return _plan_strategist_status(variant, next_status, today)
    if role == EDITOR:
        return _plan_editor_status(variant, next_status, today)
    return _plan_va_status(variant, next_status, today)


def _plan_strategist_status(variant: Variant, next_status: str, today: str) -> dict:
    require_strategist_edit(variant)
    if variant.status in LAUNCH_STAGE:
        raise WorkflowValidationError("This variant is in the launch stage. Change its status in the VA tab.")
    if variant.status == REJECTED and effective_status(variant) == READY_TO_EDIT:
        raise WorkflowValidationError("This variant was sent back to the Editor.")

    if next_status == IN_PROGRESS:
        updates = {"status": IN_PROGRESS}
        updates.update(_clear(*STAGE_DATES))
        return updates

    # READY_TO_EDIT
    _require_script(
        variant.script_link,
        'A script link must be provided before changing the status to "Ready to edit".',
    )
    updates = {"status": READY_TO_EDIT}
    if not variant.review_date:
        updates["reviewDate"] = today
    updates.update(_clear("editDate", "compDate", "launchDate"))
    return updates


def _plan_editor_status(variant: Variant, next_status: str, today: str) -> dict:
    current = effective_status(variant)
    if variant.status in LAUNCH_STAGE:
        raise WorkflowValidationError("This variant has been validated. Change its status in the VA tab.")
    if current not in (READY_TO_EDIT, COMPLETED):
        raise WorkflowValidationError("This variant is back with the Strategist and cannot be changed here.")
    if in_approval_queue(variant):
        raise WorkflowValidationError("Approve this variant into production before changing its status.")

    if next_status == COMPLETED:
        if not variant.video_link or not variant.video_link.strip():
            raise WorkflowValidationError(
                'A video link must be provided before changing the status to "Completed".'
            )
        if variant.status == COMPLETED:
            return {}
        return {"status": COMPLETED, "compDate": today}

    # READY_TO_EDIT
    _require_script(variant.script_link, 'A "Ready to edit" variant must have a script link.')
    if variant.status == READY_TO_EDIT:
        return {}
    return {"status": READY_TO_EDIT, "compDate": "", "launchDate": ""}


def _plan_va_status(variant: Variant, next_status: str, today: str) -> dict:
    if variant.status not in LAUNCH_STAGE:
        raise WorkflowValidationError("Only approved variants can be moved through the launch stage.")

    updates = {"status": next_status}
    if next_status == LIVE:
        updates["launchDate"] = today
    else:
        updates["launchDate"] = ""
    return updates


def plan_accept(variant: Variant, today: str) -> dict:
    """Editor approves a brief from the approval queue into production."""
    if not in_approval_queue(variant):
        raise WorkflowValidationError("Only variants waiting in the approval queue can be accepted.")
    return {"editDate": today}


def plan_approve_for_launch(variant: Variant) -> dict:
    """VA signs off a completed video. launchDate stays empty until Live."""
    if variant.status != COMPLETED:
        raise WorkflowValidationError("Only completed variants can be approved for launch.")
    return {"status": READY_TO_LAUNCH, "launchDate": ""}


def plan_rejection(variant: Variant, source: str, message: str, today: str,
                   destination: Optional[str] = None) -> dict:
    """
    Sends a variant backward with a reason.
    The Editor always rejects to the Strategist; VA picks Strategist or Editor.
    """
    reason = (message or "").strip()
    if not reason:
        raise WorkflowValidationError("Please provide a reason for rejection.")

    routes = REJECTION_ROUTES.get(source)
    if routes is None:
        raise WorkflowValidationError(f"{source} cannot reject variants.")
    if destination is None and len(routes) == 1:
        destination = routes[0]
    if destination not in routes:
        raise WorkflowValidationError(f"{source} cannot send a rejection to {destination}.")

    if variant.status not in REJECTABLE_FROM[source]:
        raise WorkflowValidationError(f'A "{variant.status}" variant cannot be rejected by {source}.')

    entry = RejectionEntry(source=source, message=reason, destination=destination)
    history = [h.to_doc() for h in variant.rejection_history] + [entry.to_doc()]

    updates = {"status": REJECTED, "rejectionHistory": history}
    if destination == STRATEGIST:
        updates.update(_clear(*STAGE_DATES))
    else:
        # editDate is kept.
        updates.update(_clear("compDate", "launchDate"))
        updates["reviewDate"] = today
    return updates


def plan_review_status(variant: Variant, review_status: str) -> dict:
    if variant.status != LIVE:
        raise WorkflowValidationError("Review status can only be set on Live ads.")
    if review_status not in REVIEW_STATUSES:
        raise WorkflowValidationError(f"Unknown review status: {review_status}")
    return {"reviewStatus": review_status}


# --- [S5] CREATION & FIELD EDITS ---

def validate_strategy_fields(product: str, format: str, description: str,
                             batch_code: Optional[str] = None) -> dict:
    if not product or not format or not (description or "").strip():
        raise WorkflowValidationError("Product, format and description are all required.")
    doc = {"product": product, "format": format, "description": description.strip()}
    if batch_code and batch_code.strip():
        doc["batchCode"] = batch_code.strip()
    return doc


def _validate_variant_fields(fields: dict) -> None:
    missing = [label for key, label in (("name", "name"), ("landingPage", "landing page"),
                                        ("concept", "concept"))
               if not (fields.get(key) or "").strip()]
    if missing:
        raise WorkflowValidationError(f"Missing required field(s): {', '.join(missing)}.")


def build_new_variant(fields: dict, header_id: str, today: str) -> dict:
    """
    The document for a brand-new variant under `header_id`.
    New variants start "In Progress", or straight at "Ready to edit" when the
    script is already written.
    """
    _validate_variant_fields(fields)
    status = fields.get("status") or IN_PROGRESS
    if status not in (IN_PROGRESS, READY_TO_EDIT):
        raise WorkflowValidationError(f'New variants cannot start as "{status}".')
    script_link = (fields.get("scriptLink") or "").strip()
    if status == READY_TO_EDIT:
        _require_script(script_link, 'A script link must be provided to set status to "Ready to edit".')

    variant = Variant(
        id="",
        header_id=header_id,
        name=fields["name"].strip(),
        status=status,
        created_date=today,
        review_date=today if status == READY_TO_EDIT else "",
        landing_page=fields["landingPage"],
        target=(fields.get("target") or "").strip(),
        concept=fields["concept"].strip(),
        script_link=script_link,
    )
    return variant.to_doc()


def plan_variant_edit(variant: Variant, fields: dict, today: str) -> dict:
    """
    Strategist edit form. Saving a "Ready to edit" brief sends it back to the
    Editor's approval queue (editDate cleared) so the changed brief is re-accepted.
    """
    require_strategist_edit(variant)
    _validate_variant_fields(fields)

    status = fields.get("status") or variant.status
    if status != variant.status and status not in (IN_PROGRESS, READY_TO_EDIT):
        raise WorkflowValidationError(f'The Strategist cannot set a variant to "{status}".')
    script_link = (fields.get("scriptLink") or "").strip()

    updates = {
        "name": fields["name"].strip(),
        "status": status,
        "landingPage": fields["landingPage"],
        "target": (fields.get("target") or "").strip(),
        "concept": fields["concept"].strip(),
        "scriptLink": script_link,
    }
    if status == IN_PROGRESS:
        updates.update(_clear(*STAGE_DATES))
    elif status == READY_TO_EDIT:
        _require_script(script_link, 'A script link must be provided to set status to "Ready to edit".')
        if not variant.review_date:
            updates["reviewDate"] = today
        updates.update(_clear("editDate", "compDate", "launchDate"))
    return updates


def plan_script_link(variant: Variant, link: str) -> dict:
    require_strategist_edit(variant)
    link = (link or "").strip()
    if variant.status == READY_TO_EDIT and not link:
        raise WorkflowValidationError('A "Ready to edit" variant must keep its script link.')
    return {"scriptLink": link}


def plan_video_link(variant: Variant, link: str) -> dict:
    if variant.status in LAUNCH_STAGE:
        raise WorkflowValidationError(
            "You cannot change the video link while the item is Validated. "
            "Please change the status in the VA tab."
        )
    if variant.status == COMPLETED:
        raise WorkflowValidationError(
            'You cannot change the video link while the status is "Completed". '
            'Please change the status back to "Ready to edit" first.'
        )
    return {"videoLink": (link or "").strip()}
