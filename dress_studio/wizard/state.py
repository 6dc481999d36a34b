"""Wizard state container: design -> try-on -> order."""

import logging
from datetime import datetime

from pydantic import Field
from pydantic.alias_generators import to_camel

from ..errors import StepLockedError
from ..models import CamelModel, DesignSide, DesignVariation, OrderRequest, TailorForm, TryOnResult
from .uploads import StoredImage, UploadedImage


logger = logging.getLogger(__name__)

STATE_SCHEMA_VERSION = 1

DESIGN_STEP = 0
TRY_ON_STEP = 1
ORDER_STEP = 2
STEP_NAMES = ("Design", "Try-On", "Order")

DEFAULT_COLOR = "#000000"

_IMAGE_SLOTS = ("front_drawing", "back_drawing", "person_image")


class WizardSnapshot(CamelModel):
    """Serializable copy of a :class:`Wizard`.

    Image fields hold base64 payloads and are left empty in the light
    snapshot written when storage is short on room.
    """

    schema_version: int = STATE_SCHEMA_VERSION
    current_step: int = Field(default=DESIGN_STEP, ge=DESIGN_STEP, le=ORDER_STEP)

    front_drawing: StoredImage | None = None
    back_drawing: StoredImage | None = None
    person_image: StoredImage | None = None

    design_description: str = ""
    selected_color: str = DEFAULT_COLOR
    design_variations: list[DesignVariation] = Field(default_factory=list)
    selected_front: str | None = None
    selected_back: str | None = None

    try_on_result: TryOnResult | None = None
    tailor_form: TailorForm = Field(default_factory=TailorForm)
    order_id: str | None = None


class Wizard:
    """Holds every step's data and the current step index.

    The step index never exceeds :meth:`max_reachable_step`: try-on needs a
    selected front design, order needs a try-on result. Mutations that take
    a prerequisite away pull the step back down.
    """

    def __init__(self):
        self._clear()

    def _clear(self) -> None:
        self.current_step = DESIGN_STEP

        self.front_drawing: UploadedImage | None = None
        self.back_drawing: UploadedImage | None = None
        self.person_image: UploadedImage | None = None

        self.design_description = ""
        self.selected_color = DEFAULT_COLOR
        self.design_variations: list[DesignVariation] = []
        self.selected_front: str | None = None
        self.selected_back: str | None = None

        self.try_on_result: TryOnResult | None = None
        self.tailor_form = TailorForm()
        self.order_id: str | None = None

    # ── Images ──────────────────────────────────────────────────────────

    def _replace_image(self, slot: str, image: UploadedImage | None) -> None:
        previous = getattr(self, slot)
        if previous is not None and previous is not image:
            previous.release()
        setattr(self, slot, image)

    def set_front_drawing(self, image: UploadedImage | None) -> None:
        self._replace_image("front_drawing", image)

    def set_back_drawing(self, image: UploadedImage | None) -> None:
        self._replace_image("back_drawing", image)

    def set_person_image(self, image: UploadedImage | None) -> None:
        self._replace_image("person_image", image)

    def images(self) -> list[UploadedImage]:
        return [image for image in (getattr(self, slot) for slot in _IMAGE_SLOTS) if image is not None]

    # ── Designs ─────────────────────────────────────────────────────────

    def set_variations(self, variations: list[DesignVariation]) -> None:
        """Replace the generated designs; earlier selections no longer apply."""
        self.design_variations = list(variations)
        self.selected_front = None
        self.selected_back = None
        self.try_on_result = None
        self._clamp()

    def variation(self, variation_id: str | None) -> DesignVariation | None:
        for variation in self.design_variations:
            if variation.id == variation_id:
                return variation
        return None

    def _select(self, variation_id: str, side: DesignSide) -> DesignVariation:
        variation = self.variation(variation_id)
        if variation is None:
            raise ValueError(f"Unknown design variation: {variation_id}")
        if variation.type != side:
            raise ValueError(f"{variation_id} is a {variation.type} design, not {side}")
        return variation

    def select_front(self, variation_id: str) -> DesignVariation:
        variation = self._select(variation_id, "front")
        if variation.id != self.selected_front:
            # Try-on result showed the previous design
            self.try_on_result = None
        self.selected_front = variation.id
        self._clamp()
        return variation

    def select_back(self, variation_id: str | None) -> DesignVariation | None:
        if variation_id is None:
            self.selected_back = None
            return None
        variation = self._select(variation_id, "back")
        self.selected_back = variation.id
        return variation

    @property
    def selected_front_variation(self) -> DesignVariation | None:
        return self.variation(self.selected_front)

    @property
    def selected_back_variation(self) -> DesignVariation | None:
        return self.variation(self.selected_back)

    # ── Try-on and order ────────────────────────────────────────────────

    def set_try_on_result(self, image_url: str, timestamp: datetime | None = None) -> TryOnResult:
        if self.selected_front is None:
            raise StepLockedError("Select a front design before trying it on")
        self.try_on_result = TryOnResult(image_url=image_url, timestamp=timestamp or datetime.now())
        return self.try_on_result

    def clear_try_on_result(self) -> None:
        self.try_on_result = None
        self._clamp()

    def update_tailor_form(self, **fields: str) -> TailorForm:
        """Update tailor form fields by snake_case or camelCase name."""
        updates = {}
        for name, value in fields.items():
            field_name = self._tailor_field(name)
            if field_name is None:
                raise ValueError(f"Unknown tailor form field: {name}")
            updates[field_name] = value
        self.tailor_form = self.tailor_form.model_copy(update=updates)
        return self.tailor_form

    @staticmethod
    def _tailor_field(name: str) -> str | None:
        for field_name in TailorForm.model_fields:
            if name in (field_name, to_camel(field_name)):
                return field_name
        return None

    def order_request(self) -> OrderRequest:
        """Build the submit-order body from the current selections."""
        design_images = [
            variation.image_url
            for variation in (self.selected_front_variation, self.selected_back_variation)
            if variation is not None
        ]
        return OrderRequest(
            **self.tailor_form.model_dump(),
            design_images=design_images,
            try_on_image=self.try_on_result.image_url if self.try_on_result else None,
            timestamp=datetime.now().isoformat(),
        )

    # ── Navigation ──────────────────────────────────────────────────────

    def max_reachable_step(self) -> int:
        if self.selected_front_variation is None:
            return DESIGN_STEP
        if self.try_on_result is None:
            return TRY_ON_STEP
        return ORDER_STEP

    def go_to(self, step: int) -> int:
        """Move to ``step``.

        Raises:
            StepLockedError: if the step's prerequisites are missing
        """
        if step < DESIGN_STEP or step > ORDER_STEP:
            raise ValueError(f"No such step: {step}")
        reachable = self.max_reachable_step()
        if step > reachable:
            raise StepLockedError(
                f"Cannot open {STEP_NAMES[step]} yet: complete {STEP_NAMES[reachable]} first"
            )
        self.current_step = step
        return step

    def _clamp(self) -> None:
        reachable = self.max_reachable_step()
        if self.current_step > reachable:
            logger.debug("Step %d no longer reachable, moving to %d", self.current_step, reachable)
            self.current_step = reachable

    # ── Lifecycle ───────────────────────────────────────────────────────

    def close(self) -> None:
        """Release preview handles while keeping all data."""
        for image in self.images():
            image.release()

    def reset(self) -> None:
        """Drop everything and start over at the design step."""
        self.close()
        self._clear()

    def snapshot(self, include_images: bool = True) -> WizardSnapshot:
        def stored(image: UploadedImage | None) -> StoredImage | None:
            if image is None or not include_images:
                return None
            return image.to_stored()

        return WizardSnapshot(
            current_step=self.current_step,
            front_drawing=stored(self.front_drawing),
            back_drawing=stored(self.back_drawing),
            person_image=stored(self.person_image),
            design_description=self.design_description,
            selected_color=self.selected_color,
            design_variations=self.design_variations,
            selected_front=self.selected_front,
            selected_back=self.selected_back,
            try_on_result=self.try_on_result,
            tailor_form=self.tailor_form,
            order_id=self.order_id,
        )

    @classmethod
    def restore(cls, snapshot: WizardSnapshot) -> "Wizard":
        wizard = cls()
        try:
            for slot in _IMAGE_SLOTS:
                stored = getattr(snapshot, slot)
                if stored is not None:
                    setattr(wizard, slot, UploadedImage.from_stored(stored))
        except ValueError:
            wizard.close()
            raise

        wizard.design_description = snapshot.design_description
        wizard.selected_color = snapshot.selected_color
        wizard.design_variations = list(snapshot.design_variations)
        # Dangling selections are dropped
        if wizard.variation(snapshot.selected_front) is not None:
            wizard.selected_front = snapshot.selected_front
        if wizard.variation(snapshot.selected_back) is not None:
            wizard.selected_back = snapshot.selected_back
        wizard.try_on_result = snapshot.try_on_result if wizard.selected_front else None
        wizard.tailor_form = snapshot.tailor_form
        wizard.order_id = snapshot.order_id

        wizard.current_step = snapshot.current_step
        wizard._clamp()
        return wizard
