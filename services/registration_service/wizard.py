"""
Registration wizard: collects attendee answers and, for paid events, the
bank-transfer proof, then issues exactly one registration request.

Steps::

    details --(fee)--> payment --> verification --> submit
    details --(free)--> submit

``back()`` walks verification -> payment -> details without discarding
anything already entered.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from infrastructure.external.backend_client import ApiError, BackendClient, FilePart
from services.events_service.models import Event, Registration
from services.registration_service.field_validation import (
    coerce_value,
    collect_answers,
    validate_answers,
)
from services.ui_service.notifications import Notifier
from utils.logging_config import get_logger, log_user_interaction


REGISTERED_MESSAGE = "Successfully registered for the event!"
REGISTRATION_FAILED_MESSAGE = "Failed to register for the event"
NOT_AN_IMAGE_MESSAGE = "Please upload an image file"


class WizardStep(str, Enum):
    DETAILS = "details"
    PAYMENT = "payment"
    VERIFICATION = "verification"
    COMPLETED = "completed"


class WizardError(Exception):
    """The wizard was driven in a way its step does not allow"""
    pass


class RegistrationWizard:
    """
    State machine behind the registration dialog

    Args:
        event: Event being registered for; capacity is checked by the caller
        client: Backend gateway
        notifier: Receives success/error toasts
        on_complete: Called with the created registration after a successful submit
        max_screenshot_bytes: Upper bound for the payment screenshot, None for no limit
    """

    def __init__(self, event: Event, client: BackendClient, notifier: Notifier,
                 on_complete: Optional[Callable[[Registration], None]] = None,
                 max_screenshot_bytes: Optional[int] = None):
        self.event = event
        self.client = client
        self.notifier = notifier
        self.on_complete = on_complete
        self.max_screenshot_bytes = max_screenshot_bytes
        self.logger = get_logger(__name__)

        self.step = WizardStep.DETAILS
        self.values: Dict[str, Any] = {}
        self.transaction_id = ""
        self.screenshot: Optional[FilePart] = None
        self._offered: Optional[Tuple[str, int]] = None
        self.in_flight = False
        self.registration: Optional[Registration] = None

    @property
    def is_paid(self) -> bool:
        return self.event.has_fee

    @property
    def steps(self) -> List[WizardStep]:
        if self.is_paid:
            return [WizardStep.DETAILS, WizardStep.PAYMENT, WizardStep.VERIFICATION]
        return [WizardStep.DETAILS]

    @property
    def is_submit_step(self) -> bool:
        final_step = WizardStep.VERIFICATION if self.is_paid else WizardStep.DETAILS
        return self.step == final_step

    # Input

    def set_value(self, key: str, raw: Any):
        registration_field = self.event.field_by_key(key)
        self.values[key] = coerce_value(registration_field, raw) if registration_field else raw

    def set_transaction_id(self, value: str):
        self.transaction_id = value or ""

    def select_screenshot(self, file: FilePart) -> bool:
        """Accept an image as payment proof; anything else is rejected with no state change"""
        if not file.is_image:
            self.notifier.error(NOT_AN_IMAGE_MESSAGE)
            return False
        if self.max_screenshot_bytes is not None and file.size > self.max_screenshot_bytes:
            limit_mb = self.max_screenshot_bytes / (1024 * 1024)
            self.notifier.error(f"Screenshot is too large (max {limit_mb:g}MB)")
            return False
        self.screenshot = file
        return True

    def offer_screenshot(self, file: FilePart) -> bool:
        """
        Select an upload that may be re-offered on every rerun.

        The same file (by name and size) is only checked once, so a rejected
        upload left in the uploader does not repeat its error.
        """
        offered = (file.name, file.size)
        if offered == self._offered:
            return self.screenshot is not None and (self.screenshot.name, self.screenshot.size) == offered
        self._offered = offered
        return self.select_screenshot(file)

    def detail_errors(self) -> List[str]:
        return validate_answers(self.event.registration_fields, self.values)

    @property
    def has_payment_proof(self) -> bool:
        return bool(self.transaction_id.strip()) and self.screenshot is not None

    @property
    def can_submit(self) -> bool:
        if self.in_flight or not self.is_submit_step:
            return False
        if self.is_paid:
            return self.has_payment_proof
        return True

    # Navigation

    def next(self) -> bool:
        """
        Advance one step, submitting when the current step is the last one

        Returns:
            True if the wizard moved forward or the registration was created
        """
        if self.step == WizardStep.DETAILS:
            errors = self.detail_errors()
            if errors:
                self.notifier.error("; ".join(errors))
                return False
            if self.is_paid:
                self.step = WizardStep.PAYMENT
                return True
            return self.submit()

        if self.step == WizardStep.PAYMENT:
            self.step = WizardStep.VERIFICATION
            return True

        if self.step == WizardStep.VERIFICATION:
            return self.submit()

        raise WizardError("Registration already completed")

    def back(self):
        if self.step == WizardStep.VERIFICATION:
            self.step = WizardStep.PAYMENT
        elif self.step == WizardStep.PAYMENT:
            self.step = WizardStep.DETAILS
        else:
            raise WizardError(f"Cannot go back from {self.step.value}")

    # Submission

    def build_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = collect_answers(self.event.registration_fields, self.values)
        payload["event_id"] = self.event.id
        payload["payment_verified"] = not self.is_paid
        if self.is_paid:
            payload["payment_details"] = {
                "transaction_id": self.transaction_id.strip(),
                "amount": self.event.registration_fee,
            }
        return payload

    def submit(self) -> bool:
        """
        Send the registration; at most one request is in flight at a time

        Returns:
            True on success. On failure the step and all input are kept.
        """
        if self.in_flight:
            self.logger.debug("Ignoring submit while a registration request is in flight")
            return False
        if not self.is_submit_step:
            raise WizardError(f"Cannot submit from {self.step.value}")

        errors = self.detail_errors()
        if errors:
            self.notifier.error("; ".join(errors))
            return False
        if self.is_paid and not self.has_payment_proof:
            self.notifier.error("Enter the transaction ID and upload the payment screenshot")
            return False

        self.in_flight = True
        try:
            registration = self.client.register_for_event(
                self.build_payload(),
                self.screenshot if self.is_paid else None,
            )
        except ApiError as e:
            self.logger.warning(f"Registration for event {self.event.id} failed: {e.message}")
            self.notifier.error(e.message or REGISTRATION_FAILED_MESSAGE)
            return False
        finally:
            self.in_flight = False

        self.registration = registration
        self.step = WizardStep.COMPLETED
        log_user_interaction(self.logger, "registration_submitted",
                             event_id=self.event.id, paid=self.is_paid)
        self.notifier.success(REGISTERED_MESSAGE)
        if self.on_complete:
            self.on_complete(registration)
        return True
