"""Fixed-duration clip recording from a live camera source."""

import logging
from pathlib import Path
from typing import Optional, Union

from camera_media.domain.artifacts import video_path
from camera_media.domain.models import Camera
from camera_media.infrastructure.media.command_builder import CommandBuilder
from camera_media.infrastructure.media.process_runner import ProcessRunner

logger = logging.getLogger(__name__)


class ClipRecorder:
    """Records MP4 clips with the video processor."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        builder: Optional[CommandBuilder] = None,
    ):
        self.runner = runner or ProcessRunner()
        self.builder = builder or CommandBuilder(self.runner.config)

    async def store_video(
        self,
        camera: Camera,
        recording_path: Union[str, Path],
        file_name: str,
        recording_timer: int,
    ) -> Path:
        """Record ``recording_timer`` seconds into ``<recording_path>/<file_name>.mp4``.

        The duration is handed to the video processor, which stops on its own
        once it is reached.

        Raises:
            ValueError: If the duration is not positive
            ProcessSpawnError: If the video processor can not be started
            ProcessExitError: If the recording fails
        """
        if recording_timer <= 0:
            raise ValueError(f"Recording duration must be positive, got {recording_timer}")

        destination = video_path(recording_path, file_name)
        arguments = self.builder.clip_record(camera.video_config, recording_timer, destination)

        logger.debug(f"[{camera.name}] Video requested ({recording_timer}s)")

        outcome = await self.runner.run(arguments, operation="video", camera=camera.name)
        outcome.unwrap()

        logger.debug(f"[{camera.name}] Video stored to: {destination}")
        return destination
