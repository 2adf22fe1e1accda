"""Discovery of prompt instruction files in the workspace.

Instruction files are the ``.md`` files placed directly in one of the
configured sub-folders (default ``.chat/prompts``) of a workspace folder.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from chat_context.config_loader import AttachmentsConfig
from chat_context.path_utils import PathLike, to_path

logger = logging.getLogger(__name__)

# Extension of instruction files
INSTRUCTIONS_FILE_EXTENSION = ".md"


class InstructionFileReader:
    """Lists instruction files available to attach."""

    def __init__(
        self,
        workspace_folders: Sequence[PathLike] = (),
        config: Optional[AttachmentsConfig] = None,
    ):
        self._workspace_folders = [to_path(folder) for folder in workspace_folders]
        self._config = config or AttachmentsConfig()

    @property
    def workspace_folders(self) -> List[Path]:
        return list(self._workspace_folders)

    def set_workspace_folders(self, folders: Sequence[PathLike]) -> None:
        self._workspace_folders = [to_path(folder) for folder in folders]

    async def list_files(self) -> List[Path]:
        """List instruction files in all source locations.

        Nothing is offered while prompt instructions are disabled in the
        configuration.
        """
        if not self._config.instructions_enabled:
            logger.debug("Prompt instructions are disabled, not listing files")
            return []

        locations = self.get_source_locations()
        return await asyncio.to_thread(self._find_instruction_files, locations)

    def get_source_locations(self) -> List[Path]:
        """Folders to search: each workspace folder joined with each location.

        An empty workspace has no locations.
        """
        result: List[Path] = []
        for folder in self._workspace_folders:
            for location in self._config.get_prompt_files_locations():
                result.append(folder / location)
        return result

    def _find_instruction_files(self, locations: Sequence[Path]) -> List[Path]:
        files: List[Path] = []
        for location in locations:
            try:
                children = sorted(location.iterdir())
            except FileNotFoundError:
                logger.debug("Instruction files location does not exist: %s", location)
                continue
            except NotADirectoryError:
                logger.warning("Instruction files location is not a directory: %s", location)
                continue
            except OSError as e:
                logger.warning("Cannot list instruction files in %s: %s", location, e)
                continue

            for child in children:
                if child.is_dir():
                    continue

                if not child.name.endswith(INSTRUCTIONS_FILE_EXTENSION):
                    continue

                files.append(child)

        return files
