"""
Unit tests for temporary staging of video uploads.
"""

import asyncio
import io

import pytest

from tubely.infrastructure.video.staging import STAGING_PREFIX, stage_upload


class TestStageUpload:

    def test_staged_copy_holds_upload_bytes(self, tmp_path):
        source = io.BytesIO(b"fake mp4 payload")
        source.seek(5)

        async def run():
            async with stage_upload(source, directory=tmp_path) as staged:
                assert staged.path.exists()
                assert staged.path.name.startswith(STAGING_PREFIX)
                assert staged.path.suffix == ".mp4"
                assert staged.size_bytes == len(b"fake mp4 payload")
                assert staged.path.read_bytes() == b"fake mp4 payload"
                # rewound for the next reader
                assert staged.file.read() == b"fake mp4 payload"
                return staged.path

        path = asyncio.run(run())

        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    def test_staged_copy_removed_when_body_raises(self, tmp_path):
        seen = []

        async def run():
            async with stage_upload(io.BytesIO(b"data"), directory=tmp_path) as staged:
                seen.append(staged.path)
                raise RuntimeError("probe exploded")

        with pytest.raises(RuntimeError):
            asyncio.run(run())

        assert not seen[0].exists()
        assert list(tmp_path.iterdir()) == []

    def test_body_may_remove_file_itself(self, tmp_path):
        async def run():
            async with stage_upload(io.BytesIO(b"data"), directory=tmp_path) as staged:
                staged.file.close()
                staged.path.unlink()

        asyncio.run(run())

        assert list(tmp_path.iterdir()) == []

    def test_staged_copy_removed_when_task_is_cancelled(self, tmp_path):
        async def run():
            entered = asyncio.Event()

            async def hold_staged_file():
                async with stage_upload(io.BytesIO(b"data"), directory=tmp_path):
                    entered.set()
                    await asyncio.sleep(3600)

            task = asyncio.create_task(hold_staged_file())
            await entered.wait()
            assert len(list(tmp_path.iterdir())) == 1

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())

        assert list(tmp_path.iterdir()) == []
