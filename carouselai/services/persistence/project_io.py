"""
Project snapshot export and import.

Snapshots are camelCase JSON. Only ``slides`` is required when importing;
anything else missing keeps the workspace's current value.
"""
import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Union

import aiofiles
import pydantic
import structlog

from carouselai.core.exceptions import ValidationError
from carouselai.domain.schemas.project import CarouselProject

if TYPE_CHECKING:
    from carouselai.services.workspace import Workspace

logger = structlog.get_logger(__name__)


def export_project(workspace: "Workspace") -> CarouselProject:
    """Snapshot the workspace."""
    settings = workspace.project_settings
    return CarouselProject(
        id=workspace.project_id,
        name=workspace.project_name,
        style=workspace.style,
        aspect_ratio=workspace.aspect_ratio,
        profile=workspace.profile,
        slides=list(workspace.store.snapshot()),
        created_at=workspace.created_at,
        updated_at=datetime.now(timezone.utc),
        **settings.model_dump(),
    )


def dumps(project: CarouselProject) -> str:
    return project.model_dump_json(by_alias=True, indent=2)


def loads(raw: Union[str, bytes]) -> CarouselProject:
    """Parse a snapshot, rejecting files without a ``slides`` list."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(f"Project file is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("slides"), list):
        raise ValidationError("Invalid project file: missing slides", field="slides")

    try:
        project = CarouselProject.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid project file: {e.error_count()} invalid field(s)") from e

    logger.info("project_parsed", project_id=project.id, slides=len(project.slides))
    return project


async def save(project: CarouselProject, path: str) -> str:
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(dumps(project))
    logger.info("project_saved", path=path, slides=len(project.slides))
    return path


async def load(path: str) -> CarouselProject:
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        raw = await f.read()
    return loads(raw)
