"""
Editor workspace: composition root for one carousel being edited.

Owns the backend client handle, the slide store, the task tracker and the
services built on them, together with the workspace-level display and
generation settings.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import pydantic
import structlog

from carouselai.core.config import Settings, settings as default_settings
from carouselai.core.exceptions import ConfigurationError, ValidationError
from carouselai.domain.interfaces.rendering import IArchivePackager, IRenderer
from carouselai.domain.schemas.project import CarouselProject, ProjectSettings
from carouselai.domain.schemas.slide import AspectRatio, CarouselStyle, Profile, SlideRecord, SlideType, Theme
from carouselai.services.ai.client_handle import ClientHandle
from carouselai.services.ai.content_service import ContentService
from carouselai.services.export.export_coordinator import ExportCoordinator
from carouselai.services.export.packager import ZipArchivePackager
from carouselai.services.slides.orchestrator import GenerationContext, GenerationOrchestrator
from carouselai.services.slides.store import Snapshot, SlideStore
from carouselai.services.slides.tracker import TaskTracker

logger = structlog.get_logger(__name__)

NEW_SLIDE_CONTENT = "New slide content..."

# Workspace attributes editable alongside ProjectSettings fields
WORKSPACE_FIELDS = {"project_name", "style", "aspect_ratio", "profile", "image_model", "text_model", "image_aspect_ratio"}


class Workspace:
    """One editor session."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_handle: Optional[ClientHandle] = None,
        renderer: Optional[IRenderer] = None,
        packager: Optional[IArchivePackager] = None,
        output_dir: Optional[str] = None,
    ):
        self.settings = settings or default_settings
        self.client_handle = client_handle or ClientHandle(self.settings.GEMINI_API_KEY)
        self.store = SlideStore()
        self.tracker = TaskTracker(settings=self.settings)
        self.content = ContentService(self.client_handle, self.settings)
        self.orchestrator = GenerationOrchestrator(self.store, self.tracker, self.content, self.generation_context)

        self.project_id = str(uuid.uuid4())
        self.project_name: Optional[str] = None
        self.created_at = datetime.now(timezone.utc)
        self.style = CarouselStyle.TWITTER
        self.aspect_ratio = AspectRatio.SQUARE
        self.profile = Profile()
        self.project_settings = ProjectSettings(global_image_style=self.settings.DEFAULT_IMAGE_STYLE)
        self.image_model: Optional[str] = None
        self.text_model: Optional[str] = None
        self.image_aspect_ratio: Optional[AspectRatio] = None
        self.active_slide_id: Optional[str] = None

        self.renderer = renderer
        self.packager = packager or ZipArchivePackager()
        self.output_dir = output_dir
        self._export_coordinator: Optional[ExportCoordinator] = None

        self.store.add_listener(self._keep_active_slide)

    def generation_context(self) -> GenerationContext:
        return GenerationContext(
            style=self.style,
            image_aspect_ratio=self.image_aspect_ratio or self.aspect_ratio,
            image_style=self.project_settings.global_image_style,
            image_model=self.image_model,
            text_model=self.text_model,
        )

    def display(self) -> Tuple[AspectRatio, Theme]:
        return self.aspect_ratio, self.project_settings.theme

    def set_api_key(self, api_key: str) -> str:
        """Swap the backend client; returns the masked key."""
        self.client_handle.reconfigure(api_key)
        return self.client_handle.masked_key()

    # Slides

    def new_slide(self, after_id: Optional[str] = None, **fields: Any) -> SlideRecord:
        """Insert a blank slide after ``after_id`` (default: the active slide)."""
        is_storyteller = self.style == CarouselStyle.STORYTELLER
        values: Dict[str, Any] = {
            "type": SlideType.CONTENT,
            "content": NEW_SLIDE_CONTENT,
            "show_image": False,
            "image_scale": 45 if is_storyteller else 50,
            "overlay_image": True if is_storyteller else None,
        }
        values.update({k: v for k, v in fields.items() if v is not None})
        try:
            slide = SlideRecord.model_validate(values)
        except pydantic.ValidationError as e:
            raise ValidationError(str(e)) from e

        anchor = after_id
        if anchor is None and self.active_slide_id is not None and self.store.get(self.active_slide_id):
            anchor = self.active_slide_id
        self.store.add(slide, after_id=anchor)
        self.active_slide_id = slide.id
        return slide

    def delete_slide(self, slide_id: str) -> SlideRecord:
        if len(self.store) <= 1 and self.store.get(slide_id) is not None:
            raise ValidationError("A carousel needs at least one slide")
        return self.store.delete(slide_id)

    async def activate(self, slide_id: str) -> SlideRecord:
        slide = self.store.require(slide_id)
        self.active_slide_id = slide_id
        if self.renderer is not None:
            await self.renderer.set_active_slide(slide_id)
        return slide

    async def sync_renderer(self) -> None:
        """Show the active slide in the renderer after it moved without one."""
        if self.renderer is None or self.active_slide_id is None:
            return
        if self.renderer.active_slide_id != self.active_slide_id:
            await self.renderer.set_active_slide(self.active_slide_id)

    def _keep_active_slide(self, slides: Snapshot) -> None:
        if self.active_slide_id is None or all(s.id != self.active_slide_id for s in slides):
            self.active_slide_id = slides[0].id if slides else None

    # Settings

    def set_style(self, style: CarouselStyle) -> None:
        style = CarouselStyle(style)
        if style == self.style:
            return
        self.orchestrator.convert_style(style)
        self.style = style
        logger.info("carousel_style_converted", style=style.value, slides=len(self.store))

    def update_settings(self, **fields: Any) -> None:
        """Update workspace attributes and global display settings."""
        unknown = set(fields) - WORKSPACE_FIELDS - set(ProjectSettings.model_fields)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        display = {k: v for k, v in fields.items() if k in ProjectSettings.model_fields}
        try:
            new_settings = ProjectSettings.model_validate({**self.project_settings.model_dump(), **display})
            profile = Profile.model_validate(fields["profile"]) if fields.get("profile") is not None else None
            aspect_ratio = AspectRatio(fields["aspect_ratio"]) if fields.get("aspect_ratio") else None
            image_aspect_ratio = (
                AspectRatio(fields["image_aspect_ratio"]) if fields.get("image_aspect_ratio") else None
            )
            style = CarouselStyle(fields["style"]) if fields.get("style") else None
        except (pydantic.ValidationError, ValueError) as e:
            raise ValidationError(str(e)) from e

        self.project_settings = new_settings
        if profile is not None:
            self.profile = profile
        if aspect_ratio is not None:
            self.aspect_ratio = aspect_ratio
        if "image_aspect_ratio" in fields:
            self.image_aspect_ratio = image_aspect_ratio
        for name in ("project_name", "image_model", "text_model"):
            if name in fields:
                setattr(self, name, fields[name] or None)
        if style is not None:
            self.set_style(style)

    # Persistence

    def restore(self, project: CarouselProject) -> None:
        """Replace slides and settings with a snapshot in one step."""
        overrides = project.settings_overrides()
        new_settings = self.project_settings.model_copy(update=overrides)
        slides = list(project.slides)

        self.store.reset(slides)
        self.project_settings = new_settings
        self.project_id = project.id
        if project.name is not None:
            self.project_name = project.name
        if project.style is not None:
            self.style = project.style
        if project.aspect_ratio is not None:
            self.aspect_ratio = project.aspect_ratio
        if project.profile is not None:
            self.profile = project.profile
        self.created_at = project.created_at
        self.active_slide_id = slides[0].id if slides else None

        logger.info("project_restored", project_id=project.id, slides=len(slides))

    # Export

    @property
    def export_coordinator(self) -> ExportCoordinator:
        if self.renderer is None:
            raise ConfigurationError("No renderer is configured for export")
        if self._export_coordinator is None:
            self._export_coordinator = ExportCoordinator(
                self.renderer,
                self.packager,
                slides=self.store.snapshot,
                display=self.display,
                active=lambda: self.active_slide_id,
                settings=self.settings,
                output_dir=self.output_dir,
            )
        return self._export_coordinator
