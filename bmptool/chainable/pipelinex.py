"""
Pipeline runner.

Links filter and separator stages into a chain and threads a working set of
images through it. Separators grow the set; later stages see every image.
"""

from typing import List, Optional, Sequence

from .basex import ChainComponent, RGBImage, InvalidArgumentError, LogManager


def build_chain(stages: Sequence[ChainComponent], scheduler=None) -> Optional[ChainComponent]:
    """
    Link the stages in order and return the head of the chain.

    A component holds a single successor link, so an instance may appear only
    once in a chain. Use ``run_pipeline`` to apply a stage several times.

    Args:
        stages: Components to run, first to last
        scheduler: Optional ImageTaskScheduler attached to every stage

    Returns:
        The first stage, or None for an empty pipeline

    Raises:
        InvalidArgumentError: If the same instance appears more than once
    """
    if len({id(stage) for stage in stages}) != len(stages):
        raise InvalidArgumentError("A chain cannot contain the same component instance twice")

    for current, following in zip(stages, list(stages[1:]) + [None]):
        current.scheduler = scheduler
        current.set_next(following)
    return stages[0] if stages else None


def run_pipeline(stages: Sequence[ChainComponent], images: List[RGBImage], scheduler=None) -> List[RGBImage]:
    """
    Apply every stage to the working set of images.

    Stages run one at a time without chain links, so a stage instance may be
    listed more than once. Errors raised by a stage propagate unchanged and
    abort the run.

    Args:
        stages: Filters and separators, applied in order
        images: Initial image set
        scheduler: Optional ImageTaskScheduler for parallel work within a stage

    Returns:
        The final image set
    """
    result = list(images)
    if not stages:
        return result

    LogManager.log_info("Pipeline", f"Running {len(stages)} stages over {len(result)} images")
    for stage in stages:
        stage.scheduler = scheduler
        result = stage.run(result)
    LogManager.log_info("Pipeline", f"Pipeline produced {len(result)} images")
    return result
