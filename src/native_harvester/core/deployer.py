"""
Artifact Deployer.

Executes a DeploymentPlan against the filesystem. Actions run strictly in
order and the first failure aborts the run; files deployed before the failure
are left in place for inspection.
"""

import asyncio
import logging
import os
import shutil
import tempfile
import uuid
from pathlib import Path

import aiofiles

from native_harvester.core.errors import DeployError
from native_harvester.core.process import ProcessRunner, run_process
from native_harvester.models.plan import ArchiveCreationAction, DeploymentAction, DeploymentPlan, FileCopyAction

logger = logging.getLogger(__name__)


class ArtifactDeployer:
    """Copies files and creates archives as described by a plan."""

    def __init__(self, runner: ProcessRunner = run_process, temp_dir: Path | None = None):
        """
        Args:
            runner: Process runner used to invoke ``tar``.
            temp_dir: Where archive file lists are written (system temp dir by default).
        """
        self.runner = runner
        self.temp_dir = temp_dir

    async def deploy(self, plan: DeploymentPlan) -> None:
        """
        Execute every action of ``plan``.

        Raises:
            DeployError: the first action that failed, with its type name.
        """
        if not plan.actions:
            logger.debug("No actions to execute in the deployment plan.")
            return

        logger.debug(f"Executing deployment plan with {len(plan.actions)} action(s)...")

        for action in plan.actions:
            await asyncio.sleep(0)  # cancellation point
            try:
                await self._execute(action)
            except DeployError:
                raise
            except Exception as e:
                action_type = type(action).__name__
                message = f"Error executing deployment action {action_type}: {e}"
                logger.error(message)
                raise DeployError(message, e, action_type=action_type) from e

        logger.debug("Successfully executed deployment plan.")

    async def _execute(self, action: DeploymentAction) -> None:
        match action:
            case FileCopyAction():
                await self._copy_file(action)
            case ArchiveCreationAction():
                await self._create_archive(action)
            case _:
                logger.warning(f"Unsupported deployment action type: {type(action).__name__}")

    async def _copy_file(self, action: FileCopyAction) -> None:
        logger.debug(
            f"Copying file: {action.source.name} to {action.target} "
            f"(Origin: {action.origin.value}, Package: {action.package_name})"
        )
        action.target.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(shutil.copy2, action.source, action.target)

    async def _create_archive(self, action: ArchiveCreationAction) -> None:
        if not action.items:
            logger.debug(f"No items to archive for {action.archive_name}. Skipping.")
            return

        logger.debug(
            f"Creating archive: {action.archive_path} from {len(action.items)} item(s) "
            f"(Base: {action.base_directory})"
        )
        action.archive_path.parent.mkdir(parents=True, exist_ok=True)

        file_list = self._file_list_path()
        try:
            await self._write_file_list(action, file_list)
            result = await self.runner(
                "tar",
                "-czf",
                str(action.archive_path),
                "-T",
                str(file_list),
                cwd=action.base_directory,
            )
            if not result.ok:
                message = (
                    f"tar command failed with exit code {result.returncode} "
                    f"while creating archive {action.archive_path}."
                )
                if result.stderr.strip():
                    message += f" {result.stderr.strip()}"
                logger.error(message)
                raise DeployError(message, action_type=type(action).__name__)

            logger.debug(f"Successfully created archive: {action.archive_name} ({len(action.items)} items)")
        finally:
            if file_list.exists():
                logger.debug(f"Deleting temporary file list: {file_list}")
                file_list.unlink()

    def _file_list_path(self) -> Path:
        temp_dir = self.temp_dir or Path(tempfile.gettempdir())
        temp_dir.mkdir(parents=True, exist_ok=True)
        return temp_dir / f"archive-files-{uuid.uuid4().hex}.txt"

    async def _write_file_list(self, action: ArchiveCreationAction, file_list: Path) -> None:
        """
        Write archive member names (file names relative to the base directory), one per line.

        Names are written as filesystem bytes so that names which are not valid
        UTF-8 reach tar unchanged.
        """
        data = b"".join(os.fsencode(item.source.name) + b"\n" for item in action.items)
        async with aiofiles.open(file_list, "wb") as f:
            await f.write(data)

        logger.debug(f"Created file list for tar: {file_list.name} ({len(action.items)} files)")
