"""Step list editing. Every structural change renumbers so that steps[i].order == i"""

from typing import Any, Optional

from sophub.core.models import Step, StepImage, StepType


DIRECTIONS = ("up", "down")


def renumber(steps: list[Step]) -> list[Step]:
    """Return copies of steps with order reset to each step's index."""
    return [s.model_copy(update={"order": i}) for i, s in enumerate(steps)]


def new_step(title: str = "", content: str = "", type: StepType = StepType.standard) -> Step:
    """Build a blank step with a fresh id."""
    return Step(title=title, content=content, type=type)


def add_step(steps: list[Step], step: Optional[Step] = None) -> list[Step]:
    """Append step (or a blank one) to the end of the list."""
    return renumber([*steps, step or new_step()])


def update_step(steps: list[Step], step_id: str, **fields: Any) -> list[Step]:
    """Replace fields on the step with step_id. Unknown ids leave the list unchanged.

    Structural fields (id, order) cannot be changed this way.
    """
    bad = {"id", "order"} & fields.keys()
    if bad:
        raise ValueError(f"Cannot update step field(s): {', '.join(sorted(bad))}")
    return [
        Step.model_validate({**s.model_dump(), **fields}) if s.id == step_id else s
        for s in steps
    ]


def remove_step(steps: list[Step], step_id: str) -> list[Step]:
    return renumber([s for s in steps if s.id != step_id])


def move_step(steps: list[Step], step_id: str, direction: str) -> list[Step]:
    """Swap a step with its neighbour. Moving past either end is a no-op."""
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")
    index = next((i for i, s in enumerate(steps) if s.id == step_id), None)
    if index is None:
        return list(steps)
    target = index - 1 if direction == "up" else index + 1
    if not 0 <= target < len(steps):
        return list(steps)

    moved = list(steps)
    moved[index], moved[target] = moved[target], moved[index]
    return renumber(moved)


# --- images ---

def _with_images(steps: list[Step], step_id: str, fn) -> list[Step]:
    return [
        s.model_copy(update={"images": fn(list(s.images))}) if s.id == step_id else s
        for s in steps
    ]


def add_image(steps: list[Step], step_id: str, data: str, caption: str = "") -> list[Step]:
    """Attach an image (base64 data URL) to the end of a step's image list."""
    return _with_images(steps, step_id, lambda imgs: [*imgs, StepImage(data=data, caption=caption)])


def remove_image(steps: list[Step], step_id: str, image_id: str) -> list[Step]:
    return _with_images(steps, step_id, lambda imgs: [i for i in imgs if i.id != image_id])


def update_image_caption(steps: list[Step], step_id: str, image_id: str, caption: str) -> list[Step]:
    return _with_images(
        steps, step_id,
        lambda imgs: [i.model_copy(update={"caption": caption}) if i.id == image_id else i for i in imgs],
    )
