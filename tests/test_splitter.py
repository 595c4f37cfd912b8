import os
from unittest.mock import AsyncMock, patch

import pytest

from conftest import make_file
from core.config import MB
from core.errors import ProbeFailed, SplitFailed, ToolTimeout
from core.models import MediaArtifact
from core.process_runner import CommandResult
from services.splitter import needs_split, parse_duration, plan_chunks, split_video


def _ok(stdout: str = "") -> CommandResult:
    return CommandResult(args=[], returncode=0, stdout=stdout, stderr="")


def _fail(stderr: str = "boom") -> CommandResult:
    return CommandResult(args=[], returncode=1, stdout="", stderr=stderr)


class TestNeedsSplit:
    def test_only_above_limit(self):
        assert not needs_split(50 * MB, 50 * MB)
        assert not needs_split(10, 50 * MB)
        assert needs_split(50 * MB + 1, 50 * MB)


class TestPlanChunks:
    def test_size_equal_to_target_adds_tail_slice(self):
        plan = plan_chunks(duration=100.0, file_size=40 * MB, target_size=40 * MB)
        assert plan.chunk_duration == pytest.approx(100.0)
        assert plan.count == 2  # floor(100/100) + 1

    def test_size_slightly_below_target_gives_single_chunk(self):
        plan = plan_chunks(duration=100.0, file_size=39 * MB, target_size=40 * MB)
        assert plan.chunk_duration > 100.0
        assert plan.count == 1

    def test_large_file_many_chunks(self):
        plan = plan_chunks(duration=3600.0, file_size=1000 * MB, target_size=40 * MB)
        assert plan.chunk_duration == pytest.approx(144.0)
        assert plan.count == 26

    def test_minimum_chunk_duration_clamp(self):
        plan = plan_chunks(duration=60.0, file_size=400 * MB, target_size=40 * MB)
        assert plan.chunk_duration == 30.0
        assert plan.count == 3

    def test_scenario_80mb_400s(self):
        plan = plan_chunks(duration=400.0, file_size=80 * MB, target_size=40 * MB)
        assert plan.chunk_duration == pytest.approx(200.0)
        assert plan.count == 3
        assert plan.start_of(2) == pytest.approx(400.0)

    def test_rejects_non_positive_input(self):
        with pytest.raises(ValueError):
            plan_chunks(0, 10, 10)
        with pytest.raises(ValueError):
            plan_chunks(10, 0, 10)


class TestParseDuration:
    def test_parses_float(self):
        assert parse_duration("123.456000\n") == pytest.approx(123.456)

    @pytest.mark.parametrize("output", ["", "N/A", "0", "-3", "nan"])
    def test_rejects_garbage(self, output):
        with pytest.raises(ProbeFailed):
            parse_duration(output)


def _transcoder(chunk_sizes: dict, fail_at: int | None = None):
    """Fake run_command: answers ffprobe with 400s and writes chunk files for ffmpeg."""
    calls = {"transcodes": 0}

    async def fake_run(args, timeout):
        if "ffprobe" in args[0]:
            return _ok("400.000000\n")
        calls["transcodes"] += 1
        index = calls["transcodes"]
        output = args[-1]
        if fail_at is not None and index == fail_at:
            make_file(output, 1024)  # partial output
            return _fail("Conversion failed!")
        size = chunk_sizes.get(index, 1024)
        if size is not None:
            make_file(output, size)
        return _ok()

    return fake_run, calls


class TestSplitVideo:
    async def test_produces_ordered_chunks(self, tmp_path, settings):
        source = MediaArtifact(path=make_file(tmp_path / "video.mp4", 80 * MB), size=80 * MB)
        fake_run, calls = _transcoder({1: 2048, 2: 4096, 3: 512})

        with patch("services.splitter.run_command", side_effect=fake_run):
            chunks = await split_video(source, str(tmp_path), settings)

        assert calls["transcodes"] == 3
        assert [os.path.basename(c.path) for c in chunks] == ["chunk_1.mp4", "chunk_2.mp4", "chunk_3.mp4"]
        assert [c.size for c in chunks] == [2048, 4096, 512]

    async def test_transcode_arguments(self, tmp_path, settings):
        source = MediaArtifact(path=make_file(tmp_path / "video.mp4", 80 * MB), size=80 * MB)
        fake_run, _ = _transcoder({})
        mock_run = AsyncMock(side_effect=fake_run)

        with patch("services.splitter.run_command", mock_run):
            await split_video(source, str(tmp_path), settings)

        second = mock_run.call_args_list[2].args[0]
        assert second[second.index("-ss") + 1] == "200.00"
        assert second[second.index("-t") + 1] == "200.00"
        assert second[second.index("-c:v") + 1] == "libx264"
        assert "+faststart" in second

    async def test_missing_and_empty_chunks_skipped(self, tmp_path, settings):
        source = MediaArtifact(path=make_file(tmp_path / "video.mp4", 80 * MB), size=80 * MB)
        fake_run, _ = _transcoder({1: 2048, 2: None, 3: 0})

        with patch("services.splitter.run_command", side_effect=fake_run):
            chunks = await split_video(source, str(tmp_path), settings)

        assert [os.path.basename(c.path) for c in chunks] == ["chunk_1.mp4"]
        assert not (tmp_path / "chunk_3.mp4").exists()

    async def test_failure_removes_all_chunks(self, tmp_path, settings):
        source = MediaArtifact(path=make_file(tmp_path / "video.mp4", 80 * MB), size=80 * MB)
        fake_run, _ = _transcoder({}, fail_at=3)

        with patch("services.splitter.run_command", side_effect=fake_run):
            with pytest.raises(SplitFailed) as exc_info:
                await split_video(source, str(tmp_path), settings)

        assert "Conversion failed!" in str(exc_info.value)
        assert sorted(os.listdir(tmp_path)) == ["video.mp4"]

    async def test_timeout_counts_as_split_failure(self, tmp_path, settings):
        source = MediaArtifact(path=make_file(tmp_path / "video.mp4", 80 * MB), size=80 * MB)
        fake_run, _ = _transcoder({})

        async def run(args, timeout):
            if "ffprobe" in args[0] or not os.path.exists(tmp_path / "chunk_1.mp4"):
                return await fake_run(args, timeout)
            raise ToolTimeout("ffmpeg did not finish")

        with patch("services.splitter.run_command", side_effect=run):
            with pytest.raises(SplitFailed):
                await split_video(source, str(tmp_path), settings)

        assert sorted(os.listdir(tmp_path)) == ["video.mp4"]

    async def test_transcode_is_not_retried(self, tmp_path, settings):
        source = MediaArtifact(path=make_file(tmp_path / "video.mp4", 80 * MB), size=80 * MB)
        fake_run, calls = _transcoder({}, fail_at=1)

        with patch("services.splitter.run_command", side_effect=fake_run):
            with pytest.raises(SplitFailed):
                await split_video(source, str(tmp_path), settings)

        assert calls["transcodes"] == 1

    async def test_probe_failure_is_retried_then_raised(self, tmp_path, settings):
        source = MediaArtifact(path=make_file(tmp_path / "video.mp4", 80 * MB), size=80 * MB)
        mock_run = AsyncMock(return_value=_fail("Invalid data found"))

        with patch("services.splitter.run_command", mock_run):
            with pytest.raises(ProbeFailed):
                await split_video(source, str(tmp_path), settings)

        assert mock_run.call_count == settings.PROBE_ATTEMPTS
