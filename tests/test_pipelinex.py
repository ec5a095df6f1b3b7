import pytest

from bmptool.chainable.basex import InvalidArgumentError, OutOfBoundsError
from bmptool.chainable.colorx import ColorInverter, ColorSplitter
from bmptool.chainable.geometryx import ImageCropper, ImageRotator, ImageScaler
from bmptool.chainable.pipelinex import build_chain, run_pipeline
from bmptool.chainable.slicex import ImageSlicer
from bmptool.image_scheduler import ImageTaskScheduler


def test_empty_pipeline_returns_input(noise_image):
    result = run_pipeline([], [noise_image])
    assert result == [noise_image]


def test_build_chain_links_in_order():
    stages = [ColorInverter(), ImageScaler(2), ColorSplitter()]
    head = build_chain(stages)
    assert head is stages[0]
    assert stages[0].next_component is stages[1]
    assert stages[1].next_component is stages[2]
    assert stages[2].next_component is None


def test_fan_out_threads_through_later_stages(gradient_image):
    result = run_pipeline([ColorSplitter(), ImageScaler(2), ImageSlicer(1, 2)], [gradient_image])

    # 3 channel images, each scaled to 10x6 and cut into two 5x6 halves
    assert len(result) == 6
    assert all((img.width, img.height) == (5, 6) for img in result)
    red_left = result[0]
    assert red_left.get_rgb(0, 0).g == 0 and red_left.get_rgb(0, 0).b == 0


def test_pipeline_matches_manual_application(noise_image):
    stages = [ImageRotator(1), ColorInverter()]
    expected = ColorInverter().filter(ImageRotator(1).filter(noise_image))
    assert run_pipeline(stages, [noise_image]) == [expected]


def test_pipeline_does_not_modify_inputs(noise_image):
    before = noise_image.copy()
    run_pipeline([ColorInverter(), ImageScaler(3)], [noise_image])
    assert noise_image == before


def test_failing_stage_aborts_the_run(noise_image):
    with pytest.raises(OutOfBoundsError) as info:
        run_pipeline([ColorInverter(), ImageCropper(0, 0, 50, 50), ImageScaler(2)], [noise_image])
    assert info.value.component == "ImageCropper"


def test_rerunning_stages_relinks_the_chain(noise_image):
    inverter, scaler = ColorInverter(), ImageScaler(2)
    run_pipeline([inverter, scaler], [noise_image])
    result = run_pipeline([scaler], [noise_image])
    assert result == [ImageScaler(2).filter(noise_image)]


@pytest.mark.parametrize("mode", ["threading", "multiprocessing"])
def test_scheduler_preserves_order(noise_image, gradient_image, mode):
    images = [noise_image, gradient_image, noise_image, gradient_image]
    scheduler = ImageTaskScheduler(max_workers=2, execution_mode=mode)

    result = run_pipeline([ImageRotator(1), ColorSplitter()], images, scheduler=scheduler)

    expected = run_pipeline([ImageRotator(1), ColorSplitter()], images)
    assert result == expected


def test_scheduler_inline_map(gradient_image):
    scheduler = ImageTaskScheduler()
    assert scheduler.map(lambda img: img.width, [gradient_image, gradient_image]) == [5, 5]


@pytest.mark.parametrize("kwargs", [{"max_workers": 0}, {"execution_mode": "fibers"}])
def test_scheduler_rejects_bad_settings(kwargs):
    with pytest.raises(ValueError):
        ImageTaskScheduler(**kwargs)


def test_reused_stage_instance_runs_every_time(noise_image):
    inverter = ColorInverter()
    assert run_pipeline([inverter, inverter], [noise_image]) == [noise_image]


def test_reused_scaler_applies_twice(noise_image):
    scaler, inverter = ImageScaler(2), ColorInverter()
    result = run_pipeline([scaler, inverter, scaler], [noise_image])

    assert [(img.width, img.height) for img in result] == [(28, 16)]
    assert result == [ImageScaler(4).filter(ColorInverter().filter(noise_image))]


def test_build_chain_rejects_repeated_instance():
    inverter = ColorInverter()
    with pytest.raises(InvalidArgumentError):
        build_chain([inverter, ImageScaler(2), inverter])
