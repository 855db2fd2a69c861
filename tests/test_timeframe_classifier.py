"""Tests for timeframe normalization and chart classification."""

import asyncio

import pytest

from models.chart_image import TimeframeImageSet
from models.timeframe import Timeframe, normalize_timeframe
from services.errors import VisionServiceError
from services.timeframe_classifier import TimeframeClassifier

from conftest import ScriptedVision, make_image


@pytest.mark.parametrize(
    "reply, expected",
    [
        ("4h", Timeframe.H4),
        ("4H", Timeframe.H4),
        (" 1h \n", Timeframe.H1),
        ("15m", Timeframe.M15),
        ("15MIN", Timeframe.M15),
        ("5min", Timeframe.M5),
        ("5M", Timeframe.M5),
        ("unknown", None),
        ("daily", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_timeframe(reply, expected):
    assert normalize_timeframe(reply) == expected


class TestClassify:
    def test_alias_reply_detects_timeframe(self):
        vision = ScriptedVision(analyze_reply=lambda image, prompt: "15MIN")
        result = asyncio.run(TimeframeClassifier(vision).classify(make_image(1)))

        assert result.ok
        assert result.timeframe is Timeframe.M15
        assert result.error is None

    def test_unrecognised_reply_records_raw_text(self):
        vision = ScriptedVision(analyze_reply=lambda image, prompt: "daily")
        result = asyncio.run(TimeframeClassifier(vision).classify(make_image(1)))

        assert not result.ok
        assert "daily" in result.error
        assert result.raw_reply == "daily"

    def test_transport_failure_is_recorded_not_raised(self):
        vision = ScriptedVision(analyze_reply=lambda image, prompt: VisionServiceError("connection reset"))
        result = asyncio.run(TimeframeClassifier(vision).classify(make_image(1)))

        assert not result.ok
        assert "connection reset" in result.error


class TestClassifyPending:
    def test_failures_do_not_stop_the_batch(self):
        replies = {"a.png": "4h", "b.png": "weekly", "c.png": "5min"}
        vision = ScriptedVision(analyze_reply=lambda image, prompt: replies[image.filename])
        images = [make_image(i, filename=name) for i, name in enumerate(replies, start=1)]
        image_set = TimeframeImageSet()

        processed = asyncio.run(TimeframeClassifier(vision).classify_pending(images, image_set))

        assert [image.id for image in processed] == [1, 2, 3]
        assert images[0].detected_timeframe is Timeframe.H4
        assert images[1].detected_timeframe is None
        assert "weekly" in images[1].classification_error
        assert images[2].detected_timeframe is Timeframe.M5
        assert image_set.present_timeframes() == [Timeframe.H4, Timeframe.M5]

    def test_already_classified_images_are_skipped(self):
        vision = ScriptedVision(analyze_reply=lambda image, prompt: "1h")
        done = make_image(1, Timeframe.H4)
        pending = make_image(2)

        processed = asyncio.run(TimeframeClassifier(vision).classify_pending([done, pending], TimeframeImageSet()))

        assert processed == [pending]
        assert len(vision.analyze_calls) == 1
        assert done.detected_timeframe is Timeframe.H4

    def test_later_image_wins_the_slot(self):
        vision = ScriptedVision(analyze_reply=lambda image, prompt: "1h")
        first, second = make_image(1), make_image(2)
        image_set = TimeframeImageSet()

        asyncio.run(TimeframeClassifier(vision).classify_pending([first, second], image_set))

        assert image_set.get(Timeframe.H1) is second


def test_image_is_classified_only_once():
    image = make_image(1, Timeframe.H4)
    with pytest.raises(RuntimeError):
        image.mark_failed("late error")
    assert image.classification_error is None


def test_representative_follows_priority_order():
    image_set = TimeframeImageSet()
    m5 = make_image(1, Timeframe.M5)
    h1 = make_image(2, Timeframe.H1)
    image_set.assign(m5)
    assert image_set.representative() is m5
    image_set.assign(h1)
    assert image_set.representative() is h1


def test_overlapping_batches_keep_the_first_result():
    class SlowVision(ScriptedVision):
        async def analyze(self, image, prompt):
            await asyncio.sleep(0.01)
            return await super().analyze(image, prompt)

    async def scenario():
        classifier = TimeframeClassifier(SlowVision(analyze_reply=lambda image, prompt: "4h"))
        images = [make_image(1)]
        image_set = TimeframeImageSet()
        batches = await asyncio.gather(
            classifier.classify_pending(images, image_set),
            classifier.classify_pending(images, image_set),
        )
        return batches, images

    (first, second), images = asyncio.run(scenario())

    assert first == images
    assert second == []
    assert images[0].detected_timeframe is Timeframe.H4
